"""simpletoken.cli — typer command line (`simpletoken`)."""

from .main import app, main

__all__ = ["app", "main"]
