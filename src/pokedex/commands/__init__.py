"""Built-in CLI sub-commands for pokedex.

* :mod:`~pokedex.commands.config` -- view and modify global settings.

The REPL itself is started by the root callback in :mod:`pokedex.app`.
"""
