"""
Named multiplicative modifiers for antenna rates.

Add-on modules scale an antenna's power rating, bandwidth and resource
consumption by registering named multipliers. Each rate category keeps its
own set of entries, and the combined multiplier of a category is always the
product of the values currently registered in it.


Classes
-------
Multiplier
    A single named modifier value.
MultiplierSet
    Named modifiers of one rate category with their combined product.
MultiplierRegistry
    The three category sets of one antenna, with change notification.


Constants
---------
POWER, BANDWIDTH, CONSUMPTION : str
    Rate category keys.
CATEGORIES : tuple of str
    All valid categories.


Notes
-----
- Entries are upserted: registering a name twice replaces its value.
- A value of 0 is valid and drives the effective rate to zero.
- Contents are runtime state only. They are not part of the persisted antenna
  configuration and must be registered again by their owners after a reload.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Optional
import math
import numpy as np
from rtxmit import logger

#-----------------------------------------------------------------------------#

# Rate Categories
POWER = 'power'
BANDWIDTH = 'bandwidth'
CONSUMPTION = 'consumption'
CATEGORIES = (POWER, BANDWIDTH, CONSUMPTION)

# Global Variables
log = logger.addLog('mult')

###############################################################################

@dataclass
class Multiplier:
    """
    Named modifier value.

    Attributes
    ----------
    name : str
        Identifier of the contributor, unique within a category.
    value : float
        Factor applied to the category rate.
    """

    __slots__ = ('name', 'value')

    name: str
    value: float

###############################################################################

class MultiplierSet:
    """
    Named multipliers of a single rate category.

    Parameters
    ----------
    category : str
        One of CATEGORIES.

    Attributes
    ----------
    category : str
        Rate category this set modifies.
    combined : float
        Product of all entry values, 1.0 when empty. Recomputed from scratch
        on every change.
    """

    ## Constructor ===========================================================#
    def __init__(self, category:str)->None:
        self.category = category
        self._entries:Dict[str,Multiplier] = {}
        self._combined = 1.0

    ## Properties ============================================================#
    @property
    def combined(self)->float:
        """Product of all registered multiplier values"""
        return self._combined

    ## Special Methods =======================================================#
    def __len__(self)->int:
        return len(self._entries)

    def __contains__(self, name:str)->bool:
        return name in self._entries

    def __iter__(self)->Iterator[Multiplier]:
        return iter(self._entries.values())

    def __repr__(self)->str:
        entries = ', '.join(f'{m.name}={m.value:g}' for m in self)
        return (f"<{self.__class__.__name__} {self.category} "
                f"x{self._combined:g} [{entries}]>")

    ## Methods ===============================================================#
    def get(self, name:str)->Optional[float]:
        """Return the value registered under name, or None."""
        entry = self._entries.get(name)
        return None if (entry is None) else entry.value

    #--------------------------------------------------------------------------
    def set(self, name:str, value:float)->float:
        """
        Register or update a named multiplier.


        Parameters
        ----------
        name : str
            Contributor identifier.
        value : float
            Multiplier value. Must be finite.


        Returns
        -------
        combined : float
            The category's new combined multiplier.


        Raises
        ------
        ValueError
            If value is NaN or infinite.
        """

        value = float(value)
        if (not math.isfinite(value)):
            msg = f"Multiplier '{name}' ({self.category}) must be finite"
            log.error(msg)
            raise ValueError(msg)

        entry = self._entries.get(name)
        if (entry is None):
            self._entries[name] = Multiplier(name, value)
        else:
            entry.value = value
        return self._recompute()

    #--------------------------------------------------------------------------
    def remove(self, name:str)->float:
        """Remove a named multiplier if present. Returns the new combined."""
        self._entries.pop(name, None)
        return self._recompute()

    ## Helper Methods ========================================================#
    def _recompute(self)->float:
        """Recompute the combined multiplier as the product of all entries."""
        values = [m.value for m in self._entries.values()]
        self._combined = float(np.prod(values)) if values else 1.0
        return self._combined

###############################################################################

class MultiplierRegistry:
    """
    Per-antenna store of named multipliers for all rate categories.

    Parameters
    ----------
    onChange : callable, optional
        Called as onChange(category, combined) after every set or remove.
        The antenna uses this to refresh its effective rates.

    Methods
    -------
    set(category, name, value)
        Upsert a named multiplier in a category.
    remove(category, name)
        Remove a named multiplier from a category.
    clear(category)
        Remove every multiplier of a category.
    combined(category)
        Combined multiplier of a category.
    """

    ## Constructor ===========================================================#
    def __init__(self,
                 onChange:Optional[Callable[[str,float],None]] = None,
                 )->None:
        self.onChange = onChange
        self.sets = {c:MultiplierSet(c) for c in CATEGORIES}

    ## Special Methods =======================================================#
    def __getitem__(self, category:str)->MultiplierSet:
        return self._getSet(category)

    def __repr__(self)->str:
        combined = ', '.join(f'{c}={s.combined:g}'
                             for c,s in self.sets.items())
        return f"<{self.__class__.__name__} {combined}>"

    ## Methods ===============================================================#
    def set(self, category:str, name:str, value:float)->float:
        """Upsert a named multiplier and return the category's combined."""
        combined = self._getSet(category).set(name, value)
        log.debug('%s multiplier %s=%g -> x%g',
                  category, name, value, combined)
        self._changed(category, combined)
        return combined

    #--------------------------------------------------------------------------
    def remove(self, category:str, name:str)->float:
        """Remove a named multiplier (no-op if absent), return combined."""
        mset = self._getSet(category)
        if (name in mset):
            log.debug('%s multiplier %s removed', category, name)
        combined = mset.remove(name)
        self._changed(category, combined)
        return combined

    #--------------------------------------------------------------------------
    def clear(self, category:str)->None:
        """Remove every multiplier of category."""
        mset = self._getSet(category)
        for entry in list(mset):
            mset.remove(entry.name)
        self._changed(category, mset.combined)

    #--------------------------------------------------------------------------
    def combined(self, category:str)->float:
        """Combined multiplier of category."""
        return self._getSet(category).combined

    ## Helper Methods ========================================================#
    def _getSet(self, category:str)->MultiplierSet:
        """Return the set for category or raise ValueError if unknown."""
        try:
            return self.sets[category]
        except KeyError:
            msg = (f"Unknown multiplier category '{category}'. "
                   f"Expected one of {CATEGORIES}")
            log.error(msg)
            raise ValueError(msg) from None

    #--------------------------------------------------------------------------
    def _changed(self, category:str, combined:float)->None:
        if (self.onChange is not None):
            self.onChange(category, combined)
