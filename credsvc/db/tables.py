"""SQLAlchemy table definitions.

One table per service instance.  ``data`` holds the serialized record
(see CredentialRecord.to_json); the primary key on ``id`` is where the
one-issuance-per-id rule is enforced.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from credsvc.db.engine import Base


class CredentialRow(Base):
    __tablename__ = "credentials"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    data: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, server_default=func.current_timestamp()
    )
