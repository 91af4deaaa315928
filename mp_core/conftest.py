# mp_core/conftest.py
import pytest

from mp_core.branches.models import Branch, BranchType, Position, PositionQuota, PositionType
from mp_core.branches.services import StaffGroupService
from mp_core.doctors.models import Doctor
from mp_core.doctors.services import DoctorScheduleService


@pytest.fixture
def branch_type(db):
    return BranchType.objects.create(name="Standard")


@pytest.fixture
def branch(db, branch_type):
    return Branch.objects.create(name="Siam Square", code="siam", branch_type=branch_type)


@pytest.fixture
def other_branch(db, branch_type):
    return Branch.objects.create(name="Thonglor", code="thonglor", branch_type=branch_type)


@pytest.fixture
def untyped_branch(db):
    return Branch.objects.create(name="Pop-up", code="popup")


@pytest.fixture
def front_position(db):
    return Position.objects.create(name="Front", display_order=1)


@pytest.fixture
def assistant_position(db):
    return Position.objects.create(name="Doctor Assistant", display_order=2)


@pytest.fixture
def rotation_position(db):
    return Position.objects.create(name="Rotation Nurse", position_type=PositionType.ROTATION, display_order=9)


@pytest.fixture
def front_group(db, front_position):
    return StaffGroupService.create(name="front", position_ids=[front_position.id], is_active=True)


@pytest.fixture
def assistant_group(db, assistant_position):
    return StaffGroupService.create(name="doctor-assistants", position_ids=[assistant_position.id], is_active=True)


@pytest.fixture
def front_quota(db, branch, front_position):
    return PositionQuota.objects.create(
        branch=branch,
        position=front_position,
        designated_quota=3,
        minimum_required=2,
    )


@pytest.fixture
def doctor(db):
    return Doctor.objects.create(name="Dr. Anan", code="anan")


@pytest.fixture
def make_doctor(db):
    counter = {"n": 0}

    def _make(name=None):
        counter["n"] += 1
        n = counter["n"]
        return Doctor.objects.create(name=name or f"Dr. {n:02d}", code=f"doc-{n:02d}")

    return _make


@pytest.fixture
def doctor_on_duty(branch, doctor):
    """
    Doctor scheduled at `branch` every day of the week.
    """
    for dow in range(7):
        DoctorScheduleService.set_default_schedule(doctor_id=doctor.id, day_of_week=dow, branch_id=branch.id)
    return doctor
