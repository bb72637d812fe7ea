"""Generic DMS user and authentication models, backend-independent."""

from pydantic import BaseModel, Field

class UserDetails(BaseModel):
    """
    Represents the identity of the logged in user, as returned by a DMS client.
    """
    engine: str
    id: int
    username: str
    email: str | None = None
    firstname: str | None = None
    lastname: str | None = None

class AuthResponse(BaseModel):
    """
    Represents the answer of a login, register or validate call: a token plus the user it belongs to.
    """
    token: str
    user: UserDetails

class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)

class RegisterRequest(BaseModel):
    """
    Fields required to register a new account. All of them are mandatory.
    """
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    email: str = Field(min_length=1)
    firstname: str = Field(min_length=1)
    lastname: str = Field(min_length=1)
