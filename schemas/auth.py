from pydantic import BaseModel


class User(BaseModel):
    id: str
    name: str
    email: str


class LoginCredentials(BaseModel):
    email: str
    password: str


class SignUpData(BaseModel):
    name: str
    email: str
    password: str


class Session(BaseModel):
    token: str
    user: User
