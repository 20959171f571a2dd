# services/flat_service.py
"""
Flat lookup for billing. Flats are managed elsewhere; billing only reads them.
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from models import Flat


def list_active_flats(db: Session, society_id: int) -> List[Flat]:
     """All active flats of a society, in storage order."""
     return (
          db.query(Flat)
          .filter(Flat.society_id == society_id, Flat.is_active.is_(True))
          .all()
     )


def get_flat(db: Session, society_id: int, flat_id: int) -> Optional[Flat]:
     """One active flat, only if it belongs to the society."""
     return (
          db.query(Flat)
          .filter(
               Flat.id == flat_id,
               Flat.society_id == society_id,
               Flat.is_active.is_(True),
          )
          .first()
     )
