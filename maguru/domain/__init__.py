from maguru.domain.models import ALL_ROLES, DEFAULT_ROLE, Identity, Role

__all__ = ["ALL_ROLES", "DEFAULT_ROLE", "Identity", "Role"]
