"""Forms for the match blueprint."""

from wtforms import SelectField, StringField
from wtforms.validators import DataRequired, Length, Optional

from skatehubba.core.forms import ApiForm

from .models import MatchAction


class ActionForm(ApiForm):
    """Body of a turn action."""

    action = SelectField(
        "Action",
        choices=[(a.value, a.value) for a in MatchAction],
        validators=[DataRequired()],
    )
    trickName = StringField("Trick", validators=[Optional(), Length(max=100)])  # noqa: N815
    trickDescription = StringField(  # noqa: N815
        "Description", validators=[Optional(), Length(max=500)]
    )

    def validate(self, extra_validators=None):
        """A SET needs a trick name."""
        if not super().validate(extra_validators=extra_validators):
            return False
        if self.action.data == MatchAction.SET.value and not (
            self.trickName.data or ""
        ).strip():
            self.trickName.errors = ["Trick name is required."]
            return False
        return True
