'''Resolve the elections into rankings of candidates.

Every resolution method is a :class:`core.Method` subclass constructed for
an election context. Its :meth:`core.Method.get_result` returns
a :class:`core.Result`, a mapping of ranks to candidates. If some candidates
cannot be distinguished, a :class:`core.Tie` object holding all of them
occupies their common rank.

Methods that had to choose between equally good outcomes record
a :class:`core.ComputationConflict` warning in the result rather than
failing.

The Condorcet methods are in the :mod:`condorcet` module; Single Transferable
Vote is in the :mod:`sequential` module.
'''

from condorcetlib.evaluate.core import *    # noqa
