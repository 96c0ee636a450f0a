from functools import partial

commands = {}


def argument(*args, **kwargs):
    """add an argparse argument to the `command` below it (positionals are added bottom-up)"""

    def decorator(cmd):
        if not isinstance(cmd, command):
            raise ValueError('cannot use `argument` before decorating with `command`')
        cmd.arguments.append((args, kwargs))
        return cmd

    return decorator


class command:
    """register a `cmd_*` method of CLI as a sub-command, named after the method (cmd_transfer_from -> transfer-from)"""

    def __init__(self, name: str = None, help: str = None):
        self.name = name
        self.help = help
        self.arguments = []
        self._attr = None

    def __call__(self, func):
        self._func = func
        self.__doc__ = func.__doc__
        if self.help is None:
            self.help = self.__doc__.strip().splitlines()[0].strip()
        return self

    def __set_name__(self, owner, name):
        if not name.startswith('cmd_'):
            raise ValueError(f'command methods must start with cmd_ ({name})')
        if self.name is None:
            self.name = name[4:].replace('_', '-')
        if self.name in commands:
            raise ValueError(f'{name} registered more than once')
        self._attr = name
        commands[self.name] = self

    def __get__(self, instance, owner=None):
        if instance is None:
            return self
        return partial(self._func, instance)
