#!/usr/bin/env python3
"""Print one signed development token per role for manual API calls."""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from maguru.api.deps import issue_smoke_token
from maguru.domain import Role

DEV_USERS = {
    Role.ADMIN: "admin-dev",
    Role.CREATOR: "creator-dev",
    Role.USER: "user-dev",
}

for role, user_id in DEV_USERS.items():
    token = issue_smoke_token(user_id, role=role, email=f"{user_id}@example.com")
    print(f"{role.value.title()} Token ({user_id}):\n{token}\n")
