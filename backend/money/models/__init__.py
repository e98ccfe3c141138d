from money.models.user import User

__all__ = ["User"]
