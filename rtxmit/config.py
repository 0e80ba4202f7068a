"""
Persisted antenna configuration and global transmitter settings.

The host framework saves and restores part modules through key/value config
nodes. This module holds the explicit structures that cross that boundary, so
that the engine itself never reflects over its attributes to persist them.


Classes
-------
AntennaConfig
    Persisted fields of one data transmitter and the stock packet parameters
    used to derive default rates.
TransmitterParams
    Global settings shared by every antenna in a game.
StartState
    Host start states; only flight states consume resources.


Functions
---------
getConfigStruct()
    Return the construct binary layout of an AntennaConfig.


Notes
-----
**Derived defaults:**

A config node may come from a stock part definition that only specifies packet
parameters. Missing rates are derived from those:

.. code-block:: none

    transmitConsumptionRate  = packetResourceCost / packetInterval * 0.25
    telemetryConsumptionRate = transmitConsumptionRate * 0.1
    transmitDataRate         = packetSize / packetInterval * 0.25

**Binary layout** (little-endian, 64 bytes):

.. code-block:: none

    Field                   Type        Bytes
    -----                   ----        -----
    magic                   bytes(4)    4       Const b'RTX1'
    antenna_type            uint8       1       Index into ANTENNA_TYPES
    antenna_enabled         flag        1
    deployed                flag        1
    xmit_incomplete         flag        1
    antenna_power           float64     8
    telemetry_rate          float64     8
    transmit_rate           float64     8
    data_rate               float64     8
    packet_size             float64     8
    packet_interval         float64     8
    packet_resource_cost    float64     8
"""

from __future__ import annotations
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Mapping
from typing_extensions import Self
import construct as cst
from rtxmit import logger

#-----------------------------------------------------------------------------#

# Stock to transmitter conversion factors
TELEMETRY_FACTOR = 0.1          # telemetry / transmit consumption
TRANSMIT_COST_FACTOR = 0.25     # stock packet cost to transmit consumption
TRANSMIT_RATE_FACTOR = 0.25     # stock packet size to data rate

# Antenna types
DIRECT = 'DIRECT'
RELAY = 'RELAY'
INTERNAL = 'INTERNAL'
ANTENNA_TYPES = (DIRECT, RELAY, INTERNAL)

# Global Variables
log = logger.addLog('cfg')

###############################################################################

class StartState:
    """Host start states passed to DataTransmitter.onStart()."""

    NONE = 'None'
    EDITOR = 'Editor'
    PRELAUNCH = 'PreLaunch'
    LANDED = 'Landed'
    SPLASHED = 'Splashed'
    FLYING = 'Flying'
    ORBITAL = 'Orbital'
    SUBORBITAL = 'SubOrbital'
    DOCKED = 'Docked'

    @classmethod
    def inFlight(cls, state:str)->bool:
        """True for every state except NONE and EDITOR."""
        return state not in (cls.NONE, cls.EDITOR)

###############################################################################

@dataclass
class AntennaConfig:
    """
    Persisted configuration of a data transmitter.

    Attributes
    ----------
    title : str
        Part title used in operator notices. Not persisted in binary form.
    antennaType : str
        One of ANTENNA_TYPES.
    antennaEnabled : bool
        Operator activation flag.
    deployed : bool
        Last known deployment state.
    xmitIncomplete : bool
        Allow partial delivery when a transfer is interrupted.
    antennaPower : float
        Nominal power rating (range model input, reported only).
    telemetryConsumptionRate : float
        Keep-alive resource draw per second while usable.
    transmitConsumptionRate : float
        Resource draw per second while transmitting.
    transmitDataRate : float
        Nominal bandwidth in data units (Mits) per second.
    packetSize, packetInterval, packetResourceCost : float
        Stock packet parameters used to derive missing rates.
    """

    title: str = 'Antenna'
    antennaType: str = DIRECT
    antennaEnabled: bool = True
    deployed: bool = False
    xmitIncomplete: bool = False
    antennaPower: float = 500000.0
    telemetryConsumptionRate: float = 0.1
    transmitConsumptionRate: float = 5.0
    transmitDataRate: float = 0.5
    packetSize: float = 2.0
    packetInterval: float = 1.0
    packetResourceCost: float = 20.0

    ## Constructors ==========================================================#
    @classmethod
    def fromDict(cls, node:Mapping[str,Any])->Self:
        """
        Build a config from a key/value node, deriving missing rates.


        Parameters
        ----------
        node : mapping
            Config values keyed by attribute name. Unknown keys are ignored
            with a warning. Values may be strings as stored by the host.


        Returns
        -------
        config : AntennaConfig
            Populated configuration.


        Raises
        ------
        ValueError
            If antennaType is not one of ANTENNA_TYPES or packetInterval is
            not positive.
        """

        known = {f.name:f for f in fields(cls)}
        kwargs = {}
        for key,value in node.items():
            if (key not in known):
                log.warning("Ignoring unknown config key '%s'", key)
                continue
            kwargs[key] = _coerce(value, known[key].type)
        config = cls(**kwargs)

        if (config.antennaType not in ANTENNA_TYPES):
            msg = f"Unknown antenna type '{config.antennaType}'"
            log.critical(msg)
            raise ValueError(msg)
        if (config.packetInterval <= 0):
            msg = "packetInterval must be greater than zero"
            log.critical(msg)
            raise ValueError(msg)

        if ('transmitConsumptionRate' not in node):
            config.transmitConsumptionRate = (config.packetResourceCost /
                                              config.packetInterval *
                                              TRANSMIT_COST_FACTOR)
        if ('telemetryConsumptionRate' not in node):
            config.telemetryConsumptionRate = (config.transmitConsumptionRate
                                               * TELEMETRY_FACTOR)
        if ('transmitDataRate' not in node):
            config.transmitDataRate = (config.packetSize /
                                       config.packetInterval *
                                       TRANSMIT_RATE_FACTOR)
        return config

    #--------------------------------------------------------------------------
    @classmethod
    def unpack(cls, data:bytes, title:str='Antenna')->Self:
        """Parse the binary form produced by pack()."""
        parsed = getConfigStruct().parse(data)
        return cls(
            title=title,
            antennaType=ANTENNA_TYPES[parsed.antenna_type],
            antennaEnabled=bool(parsed.antenna_enabled),
            deployed=bool(parsed.deployed),
            xmitIncomplete=bool(parsed.xmit_incomplete),
            antennaPower=parsed.antenna_power,
            telemetryConsumptionRate=parsed.telemetry_rate,
            transmitConsumptionRate=parsed.transmit_rate,
            transmitDataRate=parsed.data_rate,
            packetSize=parsed.packet_size,
            packetInterval=parsed.packet_interval,
            packetResourceCost=parsed.packet_resource_cost,
        )

    ## Methods ===============================================================#
    def toDict(self)->Dict[str,Any]:
        """Return all fields as a plain dictionary."""
        return asdict(self)

    #--------------------------------------------------------------------------
    def pack(self)->bytes:
        """Serialize to the fixed 64-byte binary layout."""
        return getConfigStruct().build({
            'antenna_type': ANTENNA_TYPES.index(self.antennaType),
            'antenna_enabled': self.antennaEnabled,
            'deployed': self.deployed,
            'xmit_incomplete': self.xmitIncomplete,
            'antenna_power': self.antennaPower,
            'telemetry_rate': self.telemetryConsumptionRate,
            'transmit_rate': self.transmitConsumptionRate,
            'data_rate': self.transmitDataRate,
            'packet_size': self.packetSize,
            'packet_interval': self.packetInterval,
            'packet_resource_cost': self.packetResourceCost,
        })

###############################################################################

@dataclass
class TransmitterParams:
    """
    Global transmitter settings.

    Attributes
    ----------
    consumptionMultiplier : float, default=1.0
        Scales the telemetry consumption of every antenna. Science
        transmissions are unaffected. Range 0 to 2.
    """

    consumptionMultiplier: float = 1.0

    def __post_init__(self)->None:
        if (not 0.0 <= self.consumptionMultiplier <= 2.0):
            msg = "consumptionMultiplier must be within [0, 2]"
            log.critical(msg)
            raise ValueError(msg)

###############################################################################

def getConfigStruct()->cst.Struct:
    """
    Return the construct binary layout for AntennaConfig.

    Use .build(dict) to serialize and .parse(bytes) to deserialize. See the
    module notes for the field table.
    """

    fltType = cst.Float64l

    return cst.Struct(
        "magic"                 / cst.Const(b'RTX1'),
        "antenna_type"          / cst.Int8ul,
        "antenna_enabled"       / cst.Flag,
        "deployed"              / cst.Flag,
        "xmit_incomplete"       / cst.Flag,
        "antenna_power"         / fltType,
        "telemetry_rate"        / fltType,
        "transmit_rate"         / fltType,
        "data_rate"             / fltType,
        "packet_size"           / fltType,
        "packet_interval"       / fltType,
        "packet_resource_cost"  / fltType,
    )

###############################################################################

def _coerce(value:Any, fieldType:Any)->Any:
    """Convert host string values to the declared field type."""

    # Annotations are strings under postponed evaluation
    typeName = fieldType if isinstance(fieldType, str) else fieldType.__name__
    if (typeName == 'bool'):
        if isinstance(value, str):
            return value.strip().lower() == 'true'
        return bool(value)
    if (typeName == 'float'):
        return float(value)
    return str(value) if (typeName == 'str') else value
