'''Common functionality for components.

Components are small named functions (pairwise win scorers, quotas) that
parametrize the resolution methods. Each component module keeps a register
dictionary of its functions and exposes ``get()`` to retrieve one by name
and ``construct()`` that also passes custom callables through.
There should normally be no need to use these functions directly.
'''

from typing import Callable, Dict, Tuple, Union


def register_functions(register: Dict[str, Callable],
                       name: str,
                       ) -> Tuple[Callable, Callable, Callable]:
    '''Build the marker, getter and constructer functions for a register.

    :param register: The dictionary to hold the registered functions, keyed
        by function name.
    :param name: Human readable name of the component kind, used in error
        messages.
    :returns: A 3-tuple of a decorator registering a function under its
        name, a getter retrieving a function by name (raising KeyError if
        unknown), and a constructer that additionally passes callables
        through unchanged.
    '''
    def mark(func: Callable) -> Callable:
        register[func.__name__] = func
        return func

    def get(func_def: str) -> Callable:
        try:
            return register[func_def]
        except (KeyError, TypeError):
            raise KeyError(f'unknown {name}: {func_def!r}')

    def construct(func_def: Union[str, Callable]) -> Callable:
        return func_def if callable(func_def) else get(func_def)

    return mark, get, construct
