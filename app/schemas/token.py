from pydantic import BaseModel

class LoginIn(BaseModel):
    email: str
    password: str

class UserRef(BaseModel):
    id: int
    name: str
    email: str
    role: str

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRef
