from core.errors import Err, Ok
from engines.submission import DualValidation, SubmissionState
from formschema.builders import obj, string


def _signup():
    return obj({"password": string().min(6), "confirm": string().min(6)}).refine(
        lambda d: d["password"] == d["confirm"], "Passwords must match", path=("confirm",)
    )


class TestDualValidation:
    def test_rules_compiled_once_at_construction(self):
        dual = DualValidation(_signup())
        assert [str(p) for p in dual.rules] == ["password", "confirm"]

    def test_accepted_requires_authoritative_pass(self):
        outcome = DualValidation(_signup()).submit({"password": "secret1", "confirm": "secret1"})
        assert outcome.state is SubmissionState.ACCEPTED
        assert outcome.history == (SubmissionState.PENDING, SubmissionState.UI_ACCEPTED, SubmissionState.ACCEPTED)
        assert outcome.ui_source == "preview"
        assert outcome.to_result() == Ok({"password": "secret1", "confirm": "secret1"})

    def test_ui_accepted_but_authoritative_rejects(self):
        dual = DualValidation(_signup())
        data = {"password": "secret1", "confirm": "secret2"}

        assert dual.ui_verdict(data).accepted
        outcome = dual.submit(data)

        assert outcome.ui_accepted is True
        assert outcome.state is SubmissionState.REJECTED
        assert outcome.errors == [("confirm", "Passwords must match")]
        assert isinstance(outcome.to_result(), Err)

    def test_client_verdict_is_recorded_but_never_decides(self):
        dual = DualValidation(_signup())
        outcome = dual.submit({"password": "secret1", "confirm": "secret1"}, ui_accepted=False)
        assert outcome.ui_source == "client"
        assert outcome.ui_bypassed is True
        assert outcome.history[1] is SubmissionState.UI_REJECTED
        assert outcome.accepted

    def test_client_claiming_acceptance_is_still_checked(self):
        outcome = DualValidation(_signup()).submit({"password": "x"}, ui_accepted=True)
        assert outcome.state is SubmissionState.REJECTED
        assert outcome.ui_report is None
        assert [path for path, _ in outcome.errors] == ["password", "confirm"]
