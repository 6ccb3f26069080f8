# type: ignore
import os

from invoke import task


@task
def venv(ctx):
    """Create the .venv with uv and install wledfan with dev extras."""
    ctx.run("uv sync --extra dev")


@task
def lint(ctx):
    """Run ruff and mypy over the package."""
    ctx.run("ruff check src tests", pty=True)
    ctx.run("ruff format --check src tests", pty=True)
    ctx.run("mypy src", pty=True)


@task
def test(ctx):
    """
    Run tests with coverage information.
    """
    ctx.run("pytest --cov=src --cov-report=term-missing", pty=True)


@task
def mock(ctx, port=8080, advertise=False):
    """Serve a mock controller on localhost for manual testing."""
    flag = "--advertise" if advertise else "--no-advertise"
    ctx.run(f"wledfan mock --http-port {port} {flag}", pty=True)


@task
def build_package(ctx):
    """Build sdist and wheel into dist/."""
    ctx.run("rm -rf dist")
    ctx.run("uv build")


@task
def release(ctx):
    """Build and publish wledfan to PyPI using uv."""
    token = os.getenv("PYPI_TOKEN")
    if not token:
        raise ValueError("PYPI_TOKEN environment variable is not set")

    ctx.run("invoke build-package")
    ctx.run(f"uv publish --token {token}")
