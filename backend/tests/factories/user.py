"""Factory Boy definition for :class:`money.models.user.User`."""

from __future__ import annotations

import factory

from money.models.user import User
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"


class UserFactory(BaseFactory):
    """Build persisted :class:`money.models.user.User` instances without tokens."""

    class Meta:
        model = User

    id = None  # let autoincrement handle it
    username = factory.Sequence(lambda n: f"user{n}@example.com")
    full_name = factory.Faker("name")
    password_hash = factory.LazyFunction(lambda: "")  # set via postgen

    @factory.post_generation
    def password(obj, create, extracted, **kwargs):
        """Set password using model setter (ensures hashing)."""
        obj.password = extracted or DEFAULT_PASSWORD
