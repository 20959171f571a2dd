# dependencies.py
"""
Request dependencies shared by the API routers.

The caller is identified by a bearer JWT issued by the auth service. Claims
used here: id (user id), society_id (tenant), role.
"""
import os
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from dotenv import load_dotenv

load_dotenv()

SECRET_KEY = os.getenv("JWT_SECRET")
ALGORITHM = "HS256"

ADMIN_ROLES = ("admin", "manager")


@dataclass(frozen=True)
class CallerContext:
     user_id: Optional[int]
     society_id: int
     role: Optional[str]

     @property
     def is_admin(self) -> bool:
          return self.role in ADMIN_ROLES


# Token Auth Dependency
def verify_token(request: Request) -> dict:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
     token = auth.split(" ")[1]
     try:
          return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
     except JWTError:
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")


def get_caller(token: dict = Depends(verify_token)) -> CallerContext:
     """Caller context scoped to the society in the token."""
     society_id = token.get("society_id")
     if society_id is None:
          raise HTTPException(
               status_code=status.HTTP_403_FORBIDDEN,
               detail="Token is not scoped to a society",
          )
     return CallerContext(
          user_id=token.get("id"),
          society_id=int(society_id),
          role=token.get("role"),
     )


def require_admin(caller: CallerContext = Depends(get_caller)) -> CallerContext:
     if not caller.is_admin:
          raise HTTPException(
               status_code=status.HTTP_403_FORBIDDEN,
               detail="Only admins and managers can manage billing",
          )
     return caller
