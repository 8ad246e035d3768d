import pytest

from common.form_rules import Evaluator, Form, Validator, build_snapshot


@pytest.fixture
def evaluator() -> Evaluator:
    return Evaluator()


@pytest.fixture
def make_snapshot():
    def _make(form: Form, data: dict | None = None, *, submitter: str | None = None):
        return build_snapshot(form, data or {}, submitter=submitter)

    return _make


@pytest.fixture
def make_signup_form():
    """Password pair, age and a newsletter opt-in gating the e-mail."""

    def _make() -> Form:
        form = Form("signup")
        name = form.add_text("name", "Name:")
        name.set_required("Please enter your name.")

        age = form.add_integer("age", "Age")
        age.add_rule(Validator.INTEGER, "Age must be a number.")
        age.add_rule(Validator.RANGE, "Age must be between %d and %d.", [18, 120])

        password = form.add_password("password", "Password")
        password.set_required()
        password.add_rule(Validator.MIN_LENGTH, "At least %d characters.", 3)

        verify = form.add_password("password_verify", "Password again")
        verify.set_required("Repeat the password.")
        verify.add_rule(Validator.EQUAL, "Passwords do not match.", password)

        newsletters = form.add_checkbox("newsletters", "Send me newsletters")
        email = form.add_email("email", "E-mail")
        email.add_condition_on(newsletters, Validator.EQUAL, True).set_required(
            "Enter an e-mail to receive newsletters."
        ).add_rule(Validator.EMAIL).end_condition()

        form.add_submit("send", "Sign up")
        form.add_submit("cancel", "Cancel").set_validation_scope(False)
        return form

    return _make


@pytest.fixture
def valid_signup_data() -> dict:
    return {
        "name": "Ada",
        "age": "36",
        "password": "s3cret",
        "password_verify": "s3cret",
        "newsletters": "",
        "email": "",
        "send": "Sign up",
    }
