from pydantic import BaseModel


class NavLink(BaseModel):
    href: str
    label: str
    active: bool


class HomePage(BaseModel):
    title: str
    sign_in_url: str
    sign_up_url: str


class AuthPage(BaseModel):
    mode: str
    redirect_url: str | None = None
