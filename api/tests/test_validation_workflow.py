"""Engine-level tests for the validation workflow (no HTTP layer)."""
import pytest
from sqlalchemy import update

from tracker.core.approval_policy import default_policy
from tracker.core.exceptions import AlreadyProcessed, Forbidden, InvalidReference, InvalidRequest, NotFound
from tracker.core.notifier import Notifier
from tracker.core.time import utc_now
from tracker.core.validation_workflow import (
    approve_request,
    get_request,
    list_requests,
    pending_requests,
    reject_request,
    submit_request,
)
from tracker.models import Notification, Project, RequestStatus, RequestType, User, ValidationRequest
from tests.conftest import TestingSessionLocal


class RecordingScheduler:
    """Collects scheduled tasks instead of running them."""

    def __init__(self):
        self.tasks = []

    def __call__(self, func, *args, **kwargs):
        self.tasks.append((func, args, kwargs))

    def run(self):
        for func, args, kwargs in self.tasks:
            func(*args, **kwargs)
        self.tasks = []


def _submit(db, actor, project, request_type, metadata=None, **kwargs):
    return submit_request(
        db, actor, request_type, project.id, "Please review", metadata,
        policy=default_policy, **kwargs
    )


def _project(db, project_id) -> Project:
    db.expire_all()
    return db.query(Project).filter(Project.id == project_id).first()


class TestSubmit:
    def test_submit_returns_resolved_pending_request(self, db_session, dept_admin, active_project):
        request = _submit(db_session, dept_admin, active_project, RequestType.BUDGET_INCREASE,
                          {"newBudget": 21000000})
        assert request.status == RequestStatus.PENDING.value
        assert request.approver_id is None
        assert request.responded_at is None
        assert request.effect_applied is None
        assert request.project.name == active_project.name
        assert request.requester.id == dept_admin.id
        assert request.payload.new_budget == 21000000

    def test_unknown_project(self, db_session, dept_admin):
        with pytest.raises(InvalidReference):
            submit_request(db_session, dept_admin, RequestType.UNBLOCK_REQUEST, "missing", "x",
                           policy=default_policy)

    def test_unknown_type(self, db_session, dept_admin, active_project):
        with pytest.raises(InvalidRequest):
            _submit(db_session, dept_admin, active_project, "MERGE_PROJECTS")

    def test_cross_department_forbidden(self, db_session, dept_admin, youth_project):
        with pytest.raises(Forbidden):
            _submit(db_session, dept_admin, youth_project, RequestType.UNBLOCK_REQUEST)
        assert db_session.query(ValidationRequest).count() == 0

    def test_negative_budget_rejected(self, db_session, dept_admin, active_project):
        with pytest.raises(InvalidRequest):
            _submit(db_session, dept_admin, active_project, RequestType.BUDGET_INCREASE,
                    {"newBudget": -5})

    def test_notification_deferred_until_scheduled_task_runs(
        self, db_session, dept_admin, minister, active_project
    ):
        scheduler = RecordingScheduler()
        request = _submit(db_session, dept_admin, active_project, RequestType.UNBLOCK_REQUEST,
                          notifier=Notifier(TestingSessionLocal), schedule=scheduler)

        assert len(scheduler.tasks) == 1
        assert db_session.query(Notification).count() == 0

        # The request is already committed and visible to other sessions
        other = TestingSessionLocal()
        try:
            assert other.query(ValidationRequest).filter(ValidationRequest.id == request.id).count() == 1
        finally:
            other.close()

        scheduler.run()
        db_session.expire_all()
        notifications = db_session.query(Notification).all()
        assert [n.user_id for n in notifications] == [minister.id]


class TestDecide:
    def test_approve_records_decision(self, db_session, dept_admin, minister, blocked_project):
        request = _submit(db_session, dept_admin, blocked_project, RequestType.UNBLOCK_REQUEST)

        decided = approve_request(db_session, minister, request.id, "ok", policy=default_policy)

        assert decided.status == RequestStatus.APPROVED.value
        assert decided.approver_id == minister.id
        assert decided.response_comment == "ok"
        assert decided.responded_at is not None
        assert decided.effect_applied is True
        assert _project(db_session, blocked_project.id).status == "IN_PROGRESS"

    def test_reject_keeps_effect_unset(self, db_session, dept_admin, minister, active_project):
        request = _submit(db_session, dept_admin, active_project, RequestType.STATUS_CHANGE,
                          {"newStatus": "COMPLETED"})

        decided = reject_request(db_session, minister, request.id, policy=default_policy)

        assert decided.status == RequestStatus.REJECTED.value
        assert decided.effect_applied is None
        assert _project(db_session, active_project.id).status == "IN_PROGRESS"

    def test_order_of_checks(self, db_session, agent, minister):
        with pytest.raises(Forbidden):
            approve_request(db_session, agent, "missing", policy=default_policy)
        with pytest.raises(NotFound):
            approve_request(db_session, minister, "missing", policy=default_policy)

    def test_stale_read_loses_compare_and_swap(
        self, db_session, dept_admin, minister, super_admin, active_project
    ):
        request = _submit(db_session, dept_admin, active_project, RequestType.BUDGET_INCREASE,
                          {"newBudget": 80000000})

        session = TestingSessionLocal(expire_on_commit=False)
        try:
            stale = session.query(ValidationRequest).filter(ValidationRequest.id == request.id).first()
            actor = session.query(User).filter(User.id == minister.id).first()
            assert stale.is_pending

            # Another approver wins in between; the cached row still says PENDING
            now = utc_now()
            session.execute(
                update(ValidationRequest)
                .where(ValidationRequest.id == request.id)
                .values(status=RequestStatus.REJECTED.value, approver_id=super_admin.id,
                        responded_at=now, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            session.commit()
            assert stale.is_pending

            with pytest.raises(AlreadyProcessed):
                approve_request(session, actor, request.id, policy=default_policy)
        finally:
            session.close()

        db_session.expire_all()
        stored = db_session.query(ValidationRequest).filter(ValidationRequest.id == request.id).first()
        assert stored.status == RequestStatus.REJECTED.value
        assert stored.approver_id == super_admin.id
        assert _project(db_session, active_project.id).budget == 20000000

    def test_failed_notification_does_not_undo_approval(
        self, db_session, dept_admin, minister, blocked_project
    ):
        def broken_session():
            raise RuntimeError("notification store unavailable")

        scheduler = RecordingScheduler()
        request = _submit(db_session, dept_admin, blocked_project, RequestType.UNBLOCK_REQUEST)
        decided = approve_request(
            db_session, minister, request.id,
            policy=default_policy, notifier=Notifier(broken_session), schedule=scheduler
        )
        assert decided.status == RequestStatus.APPROVED.value

        with pytest.raises(RuntimeError):
            scheduler.run()

        db_session.expire_all()
        stored = db_session.query(ValidationRequest).filter(ValidationRequest.id == request.id).first()
        assert stored.status == RequestStatus.APPROVED.value
        assert _project(db_session, blocked_project.id).status == "IN_PROGRESS"

    def test_notifier_swallows_write_failures(self, db_session, dept_admin, blocked_project):
        request = _submit(db_session, dept_admin, blocked_project, RequestType.UNBLOCK_REQUEST)
        notifier = Notifier(TestingSessionLocal)

        assert notifier.notify_requester(request.id, request.type, dept_admin.id, "P", "M", True) is True
        # user_id is NOT NULL
        assert notifier.notify_requester(request.id, request.type, None, "P", "M", True) is False

        db_session.expire_all()
        assert db_session.query(Notification).count() == 1

    def test_no_active_approvers_means_no_notifications(self, db_session, dept_admin, active_project):
        notifier = Notifier(TestingSessionLocal)
        request = _submit(db_session, dept_admin, active_project, RequestType.UNBLOCK_REQUEST, notifier=notifier)

        db_session.expire_all()
        assert db_session.query(Notification).count() == 0
        assert request.status == RequestStatus.PENDING.value

    def test_corrupt_budget_metadata_approves_without_effect(
        self, db_session, dept_admin, minister, active_project
    ):
        request = _submit(db_session, dept_admin, active_project, RequestType.BUDGET_INCREASE,
                          {"newBudget": 60000000})
        db_session.execute(
            update(ValidationRequest)
            .where(ValidationRequest.id == request.id)
            .values(request_metadata="{not json")
            .execution_options(synchronize_session=False)
        )
        db_session.commit()

        decided = approve_request(db_session, minister, request.id, policy=default_policy)
        assert decided.status == RequestStatus.APPROVED.value
        assert decided.effect_applied is False
        assert _project(db_session, active_project.id).budget == 20000000


class TestVisibility:
    def test_list_and_pending(self, db_session, dept_admin, other_dept_admin, minister, agent,
                              active_project, youth_project):
        own = _submit(db_session, dept_admin, active_project, RequestType.UNBLOCK_REQUEST)
        foreign = _submit(db_session, other_dept_admin, youth_project, RequestType.UNBLOCK_REQUEST)

        assert [r.id for r in list_requests(db_session, dept_admin)] == [own.id]
        assert [r.id for r in list_requests(db_session, dept_admin, requester_id=other_dept_admin.id)] == [own.id]
        assert {r.id for r in list_requests(db_session, minister)} == {own.id, foreign.id}

        assert pending_requests(db_session, agent, default_policy) == []
        assert pending_requests(db_session, dept_admin, default_policy) == []
        assert len(pending_requests(db_session, minister, default_policy)) == 2

    def test_get_request_scoped_for_department_admin(
        self, db_session, dept_admin, other_dept_admin, youth_project
    ):
        foreign = _submit(db_session, other_dept_admin, youth_project, RequestType.UNBLOCK_REQUEST)
        with pytest.raises(Forbidden):
            get_request(db_session, dept_admin, foreign.id)
        assert get_request(db_session, other_dept_admin, foreign.id).id == foreign.id
