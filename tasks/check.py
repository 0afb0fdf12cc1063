# type: ignore

import warnings

from invoke import task, Collection


@task
def check_import(ctx):
    """Check that the library and its script can be imported."""
    for name in (ctx.package, ctx.package + '.main'):
        try:
            __import__(name)
        except Exception:
            warnings.warn('Could not import {!r}, '
                          'task may fail'.format(name))


ns = Collection()
ns.add_task(check_import, default=True)
