"""
Docker-style credentials for the OCI and ORAS transports.
"""
from typing import Callable, Optional

import typer

from sifpull.kernel.contracts import DockerCredentials


def make_docker_credentials(username: str = "", password: str = "", login: bool = False,
                            prompt: Callable = typer.prompt) -> Optional[DockerCredentials]:
    """
    Build credentials from flags, prompting for whatever is missing when
    login is requested. Returns None when no credentials were given.
    """
    if login:
        if not username:
            username = prompt("Enter Docker Username")
        password = prompt("Enter Docker Password", hide_input=True)

    if not username and not password:
        return None
    if not username:
        raise ValueError("a docker password was given without a username")
    if not password:
        raise ValueError(f"no docker password given for user {username!r}")
    return DockerCredentials(username=username, password=password)


def credential_provider(username: str = "", password: str = "", login: bool = False,
                        prompt: Callable = typer.prompt) -> Callable[[], Optional[DockerCredentials]]:
    """Defer credential creation until a transport actually needs it."""
    def provide() -> Optional[DockerCredentials]:
        return make_docker_credentials(username, password, login, prompt)
    return provide
