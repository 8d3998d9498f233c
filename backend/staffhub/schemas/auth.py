# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel


class Principal(BaseModel):
    """The authenticated caller, as handed over by the auth provider.

    Only the id is trusted; role and organization always come from the
    caller's Profile row.
    """

    user_id: uuid.UUID
