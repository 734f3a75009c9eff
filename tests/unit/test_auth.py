"""
Unit tests for session and authentication module.
"""

import pytest
from guild.auth import (
    Session,
    hash_password,
    require_role,
    session_from_record,
    sign_in,
    verify_password
)
from guild.errors import AuthenticationError, AuthorizationError


class MockUserDirectory:
    """In-memory user directory for testing."""

    def __init__(self, records=None):
        self.records = {record['email']: record for record in records or []}
        self.lookups = []

    def get_user_by_email(self, email):
        self.lookups.append(email)
        return self.records.get(email)


@pytest.fixture(scope="module")
def student_hash():
    return hash_password("quest-on")


@pytest.fixture
def directory(student_hash):
    return MockUserDirectory([
        {
            'id': 'student-1',
            'email': 'student@demo.com',
            'name': 'Alex Student',
            'role': 'adventurer',
            'xp': 5500,
            'password_hash': student_hash
        },
        {
            'id': 'company-1',
            'email': 'company@demo.com',
            'name': 'Tech Corp',
            'role': 'company',
            'password_hash': student_hash
        }
    ])


class TestPasswordHashing:
    """Test password hashing functionality."""

    def test_hash_differs_from_plaintext(self):
        """Hash should never equal plaintext password."""
        assert hash_password("secret") != "secret"

    def test_hash_returns_string(self):
        assert isinstance(hash_password("secret"), str)

    def test_different_salts(self):
        """Same password should produce different hashes due to different salts."""
        assert hash_password("secret") != hash_password("secret")


class TestPasswordVerification:
    """Test password verification functionality."""

    def test_correct_password(self, student_hash):
        assert verify_password("quest-on", student_hash) is True

    def test_wrong_password(self, student_hash):
        assert verify_password("quest-off", student_hash) is False

    def test_malformed_hash(self):
        """Malformed hash should fail verification instead of raising."""
        assert verify_password("quest-on", "not-a-bcrypt-hash") is False
        assert verify_password("quest-on", "") is False
        assert verify_password("quest-on", None) is False


class TestSignIn:
    """Test sign-in against the user directory."""

    def test_adventurer_session(self, directory):
        session = sign_in('student@demo.com', 'quest-on', directory)
        assert session == Session(
            user_id='student-1',
            email='student@demo.com',
            name='Alex Student',
            role='adventurer',
            xp=5500,
            rank='D'
        )

    def test_company_has_no_rank(self, directory):
        session = sign_in('company@demo.com', 'quest-on', directory)
        assert session.role == 'company'
        assert session.rank is None

    def test_wrong_password(self, directory):
        assert sign_in('student@demo.com', 'wrong', directory) is None

    def test_unknown_email(self, directory):
        assert sign_in('nobody@demo.com', 'quest-on', directory) is None
        assert directory.lookups == ['nobody@demo.com']

    def test_missing_password_hash(self):
        """A record with a null hash fails sign-in instead of raising."""
        directory = MockUserDirectory([
            {'id': 'student-2', 'email': 'nohash@demo.com', 'role': 'adventurer', 'password_hash': None}
        ])
        assert sign_in('nohash@demo.com', 'quest-on', directory) is None

    def test_session_is_immutable(self, directory):
        session = sign_in('student@demo.com', 'quest-on', directory)
        with pytest.raises(AttributeError):
            session.xp = 999999

    def test_unknown_role_rejected(self):
        with pytest.raises(AuthorizationError):
            session_from_record({'id': 'x', 'email': 'x@demo.com', 'role': 'wizard'})


class TestRequireRole:
    """Test role gating."""

    SESSION = Session(user_id='admin-1', email='admin@demo.com', name='Admin', role='admin')

    def test_no_session(self):
        with pytest.raises(AuthenticationError) as excinfo:
            require_role(None, 'admin')
        assert excinfo.value.status_code == 401

    def test_wrong_role(self):
        with pytest.raises(AuthorizationError) as excinfo:
            require_role(self.SESSION, 'company')
        assert excinfo.value.status_code == 403

    def test_allowed_role(self):
        assert require_role(self.SESSION, 'company', 'admin') is self.SESSION

    def test_any_signed_in_user(self):
        assert require_role(self.SESSION) is self.SESSION
