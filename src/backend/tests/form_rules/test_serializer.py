import json

from common.form_rules import Form, Serializer, Validator, serialize_control, serialize_form


class UpperTranslator:
    def __init__(self):
        self.calls = []

    def translate(self, message, count=None):
        self.calls.append((message, count))
        return message.upper()


def test_rule_export_is_order_preserving_and_transport_safe():
    form = Form("signup")
    password = form.add_password("password", "Password:")
    verify = form.add_password("verify", "Again")
    verify.set_required()
    verify.add_rule(Validator.EQUAL, "Passwords do not match.", password)
    verify.add_condition(Validator.MAX_LENGTH, 5).add_rule(
        ~Validator.PATTERN, "No spaces in %label.", r".*\s.*"
    ).else_condition().add_rule(Validator.MAX_LENGTH, None, 64).end_condition()

    description = serialize_control(verify).model_dump(mode="json", by_alias=True, exclude_none=True)
    json.dumps(description)

    assert description["address"] == "verify"
    assert description["required"] is True
    assert description["validate"] is True
    rules = description["rules"]
    assert [r["op"] for r in rules] == [":filled", ":equal", ":maxLength"]
    assert rules[0]["msg"] == "This field is required."
    assert rules[1]["arg"] == {"control": "password"}
    condition = rules[2]
    assert "msg" not in condition
    assert condition["arg"] == 5
    assert condition["rules"] == [
        {
            "op": ":pattern",
            "neg": True,
            "control": "verify",
            "arg": r".*\s.*",
            "msg": "No spaces in %label.",
        }
    ]
    assert condition["else"][0]["msg"] == "Please enter no more than %d characters."


def test_condition_on_other_control_exports_its_address():
    form = Form()
    box = form.add_container("contact")
    flag = box.add_checkbox("newsletters")
    email = box.add_email("email")
    email.add_condition_on(flag, Validator.EQUAL, True).set_required()

    rules = serialize_control(email).model_dump(mode="json", by_alias=True, exclude_none=True)["rules"]
    assert rules[0]["control"] == "contact.newsletters"
    assert rules[0]["rules"][0]["control"] == "contact.email"
    assert "else" not in rules[0]


def test_form_description_lists_controls_and_submitters():
    form = Form("order")
    form.add_select("country", "Country", {"cz": "Czechia", "sk": "Slovakia"})
    form.add_text("code", default="X1").set_disabled()
    form.add_submit("send")
    form.add_submit("back").set_validation_scope(False)

    description = serialize_form(form).to_transport()
    assert description["form"] == "order"
    assert [c["address"] for c in description["controls"]] == ["country", "code", "send", "back"]
    assert description["controls"][0]["items"] == ["cz", "sk"]
    assert description["controls"][1]["disabled"] is True
    assert description["controls"][1]["default"] == "X1"
    assert description["submitters"] == [{"address": "send"}, {"address": "back", "scope": []}]
    assert form.finalized


def test_messages_are_translated_with_placeholders_kept():
    translator = UpperTranslator()
    form = Form(translator=translator)
    name = form.add_text("name", "Name")
    name.add_rule(Validator.MIN_LENGTH, "%label needs %d chars, got %value.", 3)

    description = Serializer(form).serialize(name)
    assert description.label == "NAME"
    assert description.rules[0].msg == "%LABEL NEEDS %D CHARS, GOT %VALUE."
    assert ("%label needs %d chars, got %value.", 3) in translator.calls


def test_config_message_overrides_defaults():
    from common.form_rules import EngineConfig

    form = Form(config=EngineConfig(messages={":filled": "Required!", "~:filled": "Leave empty!"}))
    a = form.add_text("a")
    a.add_rule(Validator.FILLED)
    b = form.add_text("b")
    b.add_rule(~Validator.FILLED)
    c = form.add_text("c")
    c.add_rule(Validator.FILLED, "Own message")

    assert serialize_control(a).rules[0].msg == "Required!"
    assert serialize_control(b).rules[0].msg == "Leave empty!"
    assert serialize_control(c).rules[0].msg == "Own message"


def test_data_attribute_is_compact_json():
    form = Form()
    name = form.add_text("name")
    name.set_required("Fill it.")
    assert Serializer(form).data_attribute(name) == (
        '[{"op":":filled","neg":false,"control":"name","msg":"Fill it."}]'
    )


def test_serialization_does_not_mutate_tree():
    form = Form()
    name = form.add_text("name")
    name.add_condition(Validator.FILLED).add_rule(Validator.MIN_LENGTH, None, 2)
    before = repr(name.tree)
    serialize_form(form)
    serialize_form(form)
    assert repr(name.tree) == before
