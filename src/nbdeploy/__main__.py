"""Allow ``python -m nbdeploy``."""

from .cli.main import app

app(prog_name="nbdeploy")
