"""
Profile resolution for the store endpoints.

The journal has no accounts: a client picks its profile with the X-Profile-ID
header and every store endpoint works on that profile's workspace.
"""

import re
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from reflection_coach.core.constants import DEFAULT_PROFILE_ID, PROFILE_ID_PATTERN
from reflection_coach.services.workspace import Workspace, get_workspace_registry

_PROFILE_ID_RE = re.compile(PROFILE_ID_PATTERN)


def get_profile_id(x_profile_id: Optional[str] = Header(None)) -> str:
    """
    Resolve the profile id from the X-Profile-ID header.

    Raises:
        HTTPException 400: Header present but not a safe storage key segment
    """
    if not x_profile_id:
        return DEFAULT_PROFILE_ID
    if not _PROFILE_ID_RE.match(x_profile_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Profile-ID must be 1-64 letters, digits, '-' or '_'",
        )
    return x_profile_id


def get_workspace(profile_id: str = Depends(get_profile_id)) -> Workspace:
    """Get the workspace of the requesting profile."""
    return get_workspace_registry().get(profile_id)
