'''Registry of named resolution methods.

A :class:`MethodRegistry` maps method names and their aliases
(case-insensitively) to factories that construct :class:`Method` objects for
an election context. Elections look methods up by name in a registry; the
:data:`DEFAULT_REGISTRY` holds all methods of this package and is frozen at
import. To add custom methods, build a registry with
:func:`build_default_registry`, register them and pass the registry to the
election.
'''

import functools
from typing import Callable, Dict, Iterable, List

import condorcetlib.evaluate.condorcet
import condorcetlib.evaluate.sequential
from condorcetlib.evaluate.core import Method, ElectionContext


MethodFactory = Callable[..., Method]


class UnknownMethod(KeyError):
    '''The requested method name is not registered.

    :param name: The requested name.
    '''
    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f'unknown method: {self.name!r}'


class RegistryFrozen(RuntimeError):
    '''An attempt was made to register a method in a frozen registry.'''
    pass


class MethodEntry:
    '''A named resolution method. Wraps a method factory.

    :param name: Canonical name of the method, reported in results.
    :param factory: A callable taking the election context and a ``name``
        keyword argument and returning a :class:`Method`.
    :param aliases: Other names the method can be looked up by.
    '''
    def __init__(self,
                 name: str,
                 factory: MethodFactory,
                 aliases: Iterable[str] = (),
                 ):
        self.name = name
        self.factory = factory
        self.aliases = tuple(aliases)

    def __repr__(self) -> str:
        return f'<MethodEntry({self.name})>'

    def build(self, context: ElectionContext) -> Method:
        '''Construct the method for the given election context.'''
        return self.factory(context, name=self.name)


class MethodRegistry:
    '''A lookup table of resolution methods by name.

    Lookup is case-insensitive over the canonical names and aliases.
    Once frozen, no more methods can be registered.
    '''
    def __init__(self):
        self._entries = {}
        self._lookup = {}
        self._frozen = False

    def __contains__(self, name: str) -> bool:
        return _normalize(name) in self._lookup

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self,
                 factory: MethodFactory,
                 name: str,
                 aliases: Iterable[str] = (),
                 ) -> MethodEntry:
        '''Register a method factory under a name and aliases.

        :raises RegistryFrozen: If the registry has been frozen.
        :raises ValueError: If the name or any alias is already taken.
        '''
        if self._frozen:
            raise RegistryFrozen(f'cannot register {name!r}: registry frozen')
        entry = MethodEntry(name, factory, aliases)
        keys = [_normalize(key) for key in (name, ) + entry.aliases]
        taken = [key for key in keys if key in self._lookup]
        if taken or len(set(keys)) != len(keys):
            raise ValueError(f'method names already registered: {taken}')
        self._entries[name] = entry
        for key in keys:
            self._lookup[key] = entry
        return entry

    def get(self, name: str) -> MethodEntry:
        '''Return the method registered under the name or alias.

        :raises UnknownMethod: If no such method is registered.
        '''
        try:
            return self._lookup[_normalize(name)]
        except (KeyError, AttributeError):
            raise UnknownMethod(name)

    def canonical_name(self, name: str) -> str:
        return self.get(name).name

    def names(self) -> List[str]:
        '''Return the canonical names of all registered methods.'''
        return list(self._entries)

    def aliases(self) -> Dict[str, List[str]]:
        return {
            name: list(entry.aliases) for name, entry in self._entries.items()
        }

    def freeze(self) -> None:
        self._frozen = True


def _normalize(name: str) -> str:
    return name.strip().casefold()


def build_default_registry() -> MethodRegistry:
    '''Build an unfrozen registry with all methods of this package.'''
    condorcet = condorcetlib.evaluate.condorcet
    registry = MethodRegistry()
    registry.register(condorcet.CondorcetBasic, 'Condorcet Basic',
                      ['CondorcetBasic', 'Condorcet'])
    registry.register(condorcet.Copeland, 'Copeland')
    registry.register(
        functools.partial(condorcet.Minimax, pairwin_scoring='winning_votes'),
        'Minimax Winning',
        ['Minimax', 'MinimaxWinning', 'Minimax_Winning', 'Simpson-Kramer',
         'Successive reversal'],
    )
    registry.register(
        functools.partial(condorcet.Minimax, pairwin_scoring='margins'),
        'Minimax Margin',
        ['MinimaxMargin', 'Minimax_Margin'],
    )
    registry.register(
        functools.partial(condorcet.Minimax,
                          pairwin_scoring='pairwise_opposition'),
        'Minimax Opposition',
        ['MinimaxOpposition', 'Minimax_Opposition'],
    )
    registry.register(
        functools.partial(condorcet.Schulze, pairwin_scoring='winning_votes'),
        'Schulze Winning',
        ['Schulze', 'SchulzeWinning', 'Schulze_Winning',
         'Schwartz Sequential Dropping', 'SSD',
         'Cloneproof Schwartz Sequential Dropping', 'CSSD', 'Beatpath',
         'Beatpath Method', 'Beatpath Winner', 'Path Voting', 'Path Winner'],
    )
    registry.register(
        functools.partial(condorcet.Schulze, pairwin_scoring='margins'),
        'Schulze Margin',
        ['SchulzeMargin', 'Schulze_Margin'],
    )
    registry.register(
        functools.partial(condorcet.RankedPairs,
                          pairwin_scoring='winning_votes'),
        'Ranked Pairs Winning',
        ['Ranked Pairs', 'RankedPairs', 'RankedPairsWinning',
         'Ranked_Pairs_Winning', 'Tideman'],
    )
    registry.register(
        functools.partial(condorcet.RankedPairs, pairwin_scoring='margins'),
        'Ranked Pairs Margin',
        ['RankedPairsMargin', 'Ranked_Pairs_Margin'],
    )
    registry.register(
        condorcet.KemenyYoung,
        'Kemeny-Young',
        ['Kemeny–Young', 'Kemeny Young', 'KemenyYoung', 'Kemeny rule',
         'VoteFair popularity ranking', 'Maximum Likelihood Method',
         'Median Relation'],
    )
    registry.register(
        condorcetlib.evaluate.sequential.SingleTransferableVote,
        'STV',
        ['Single Transferable Vote', 'SingleTransferableVote'],
    )
    return registry


DEFAULT_REGISTRY = build_default_registry()
DEFAULT_REGISTRY.freeze()
