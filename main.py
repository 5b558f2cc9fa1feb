from rich.pretty import pprint

from arbor import *
from arbor.validators import is_integer

registry = Registry(shell=True, fancy=True, colorful=True)


@registry.action(
    arguments=[Argument("target", "where to deploy")],
    fields=[Field("env", "e", default="prod"), Field("replicas", "r", filter=is_integer)],
    flags=[Flag("verbose", "v"), Flag("force", "f")],
)
def deploy(request):
    """Ship a build to a target."""
    pprint(request)


if __name__ == '__main__':
    invoke(registry)
