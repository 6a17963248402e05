from pindistance.location.dialogs import (
    ConsoleDialogPresenter,
    error_dialog,
    permission_denied_dialog,
    permission_request_dialog,
)


def _presenter(answers):
    lines = []
    feed = iter(answers)

    def fake_input(_prompt):
        try:
            return next(feed)
        except StopIteration:
            raise EOFError

    return ConsoleDialogPresenter(input_fn=fake_input, output_fn=lines.append), lines


def test_choice_by_number_triggers_that_action():
    pressed = []
    dialog = permission_request_dialog(lambda: pressed.append("allow"), lambda: pressed.append("cancel"))
    presenter, lines = _presenter(["1"])

    presenter.present(object(), dialog)

    assert pressed == ["allow"]
    assert lines[0] == "[Location Permission]"
    assert "  1) Allow" in lines


def test_choice_by_label_is_case_insensitive():
    pressed = []
    dialog = permission_request_dialog(lambda: pressed.append("allow"), lambda: pressed.append("cancel"))
    presenter, _ = _presenter(["cancel"])

    presenter.present(object(), dialog)

    assert pressed == ["cancel"]


def test_end_of_input_picks_cancel_action():
    pressed = []
    dialog = permission_request_dialog(lambda: pressed.append("allow"), lambda: pressed.append("cancel"))
    presenter, _ = _presenter([])

    presenter.present(object(), dialog)

    assert pressed == ["cancel"]


def test_settings_action_prints_hint():
    presenter, lines = _presenter(["1"])

    presenter.present(object(), permission_denied_dialog())

    assert ConsoleDialogPresenter.SETTINGS_HINT in lines


def test_single_action_dialog_does_not_prompt():
    presenter, lines = _presenter([])

    presenter.present(object(), error_dialog("boom"))

    assert lines == ["[Error]", "boom"]
