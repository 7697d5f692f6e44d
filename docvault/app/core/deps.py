from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from docvault.app.dependencies import AppDependencies


def get_deps(request: Request) -> AppDependencies:
    return request.app.state.deps


DepsDep = Annotated[AppDependencies, Depends(get_deps)]
