"""Forms for the matchmaking blueprint."""

from wtforms import SelectField, StringField
from wtforms.validators import AnyOf, DataRequired, Length, Optional

from skatehubba.core.forms import ApiForm
from skatehubba.match.models import Stance

STANCE_CHOICES = [(s.value, s.value.title()) for s in Stance]


class QueueForm(ApiForm):
    """Body of a quick-match queue request."""

    stance = SelectField(
        "Stance",
        choices=STANCE_CHOICES,
        default=Stance.REGULAR.value,
        validators=[Optional()],
    )


class QuickMatchForm(ApiForm):
    """Body of a random-opponent challenge."""

    gameId = StringField("Game", validators=[Optional(), Length(max=128)])  # noqa: N815


class ChallengeForm(ApiForm):
    """Body of a direct challenge."""

    opponentId = StringField(  # noqa: N815
        "Opponent", validators=[DataRequired(), Length(max=128)]
    )
    stance = SelectField(
        "Stance",
        choices=STANCE_CHOICES,
        default=Stance.REGULAR.value,
        validators=[Optional()],
    )


class AcceptChallengeForm(ApiForm):
    """Body of a challenge acceptance."""

    stance = StringField(
        "Stance", validators=[Optional(), AnyOf([s.value for s in Stance])]
    )
