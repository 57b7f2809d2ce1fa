"""Forms for the remote S.K.A.T.E. blueprint."""

from flask_wtf.file import FileField, FileRequired  # type: ignore
from wtforms import IntegerField, SelectField
from wtforms.validators import DataRequired, InputRequired, NumberRange

from skatehubba.core.forms import ApiForm

from .models import RoundResult, VideoRole


class ResultForm(ApiForm):
    """Body of a resolve, confirm or adjudicate request."""

    result = SelectField(
        "Result",
        choices=[(r.value, r.value) for r in RoundResult],
        validators=[DataRequired()],
    )


class VideoUploadForm(ApiForm):
    """Multipart body of a round video upload."""

    file = FileField("Video", validators=[FileRequired()])
    role = SelectField(
        "Role",
        choices=[(r.value, r.value) for r in VideoRole],
        validators=[DataRequired()],
    )
    durationMs = IntegerField(  # noqa: N815
        "Duration (ms)", validators=[InputRequired(), NumberRange(min=1)]
    )
