"""Base form for validating JSON and multipart API bodies."""

from flask_wtf import FlaskForm  # type: ignore

from skatehubba.errors import ValidationError


class ApiForm(FlaskForm):
    """A FlaskForm bound to the request's JSON or multipart body.

    Bearer-token requests carry no session cookie, so CSRF is off.
    """

    class Meta:
        csrf = False

    def validate_or_raise(self):
        """Validate, raising ValidationError with the first failure."""
        if self.validate():
            return self
        for field_name, messages in self.errors.items():
            if messages:
                raise ValidationError(f"{field_name}: {messages[0]}")
        raise ValidationError()
