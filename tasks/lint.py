# type: ignore

from invoke import task, Collection

from .check import check_import


@task(check_import)
def flake8(ctx):
    """Run the flake8 linter."""
    ctx.run('flake8 {} test {} *.py'.format(ctx.package, __package__))


@task(flake8)
def all(ctx):
    """Run all linters."""
    pass


ns = Collection(flake8)
ns.add_task(all, default=True)
