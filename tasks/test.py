# type: ignore

from shlex import join

from invoke import task, Collection

from .check import check_import

demo_commands = ['list -all', 'user -list', 'quota alice', 'show INBOX']


@task(check_import)
def pytest(ctx):
    """Run the unit tests with py.test."""
    ctx.run('py.test --cov={} --cov-report=term-missing'.format(ctx.package))


@task(check_import)
def demo(ctx):
    """Run a few commands against the demo server."""
    ctx.run(join(['imapadmin', '--yes', *demo_commands]))


@task(pytest, demo)
def all(ctx):
    """Run all test utilities."""
    pass


ns = Collection(pytest, demo)
ns.add_task(all, default=True)
