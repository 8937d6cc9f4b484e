import nox

PYTHONS = ["3.11", "3.12", "3.13"]


@nox.session(python=PYTHONS)
def tests(session):
    session.install(".[dev]")
    session.run("pytest", "tests/a_unit", *session.posargs)


@nox.session(python=PYTHONS[-1])
def integration(session):
    session.install(".[dev]")
    session.run("pytest", "tests/b_integration", *session.posargs)
