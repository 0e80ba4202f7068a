"""
RT-Xmit: Resource-Gated Science Data Transmission Engine

Per-antenna engine that streams queued science data over simulation time,
gated by deployment state, a link-budget check and continuous resource draw.

Modules
-------
antenna : Data transmitter engine and antenna state
multiplier : Named rate multipliers
deployment : Deployment reporters and admission tracker
resources : Resource pools and per-tick power accounting
transmission : Cooperative transmission scheduler
status : Status label and operator control visibility
science : Data items, queue and transfer collaborators
link : Link-budget checks
notify : Operator notification sinks
config : Persisted configuration and global settings
vessels : Vessels owning shared collaborators and antennas
simulator : Fixed-step simulation coordination
plotTimeSeries : Visualization and plotting utilities
logger : Logging configuration and utilities

Examples
--------
### Transmit one item from a battery-powered vessel:

>>> import rtxmit as rx
>>>
>>> ship = rx.vessels.Vessel(pool=rx.resources.Battery(500.0))
>>> ship.subjects.add('temp@Orbit', 'Temperature Scan')
>>> ant = ship.addAntenna(rx.config.AntennaConfig(transmitDataRate=2.0))
>>> ant.queueData([rx.science.DataItem('Temperature Scan',
...                                    'temp@Orbit', 10.0)])
>>>
>>> sim = rx.Simulator(name='Basic', sampleTime=0.5, N=20, vessels=[ship])
>>> sim.schedule(1.0, ant.startTransmission)
>>> sim.run()
"""

# Core modules - import for direct access
from . import antenna
from . import config
from . import deployment
from . import link
from . import logger
from . import multiplier
from . import notify
from . import plotTimeSeries
from . import resources
from . import science
from . import simulator
from . import status
from . import transmission
from . import vessels

# Classes and functions for convenience
from .antenna import DataTransmitter
from .simulator import Simulator
from .simulator import save, load

# Version info
__version__ = "0.1.0"

# Define what gets imported with "from rtxmit import *"
__all__ = [
    # Modules
    'antenna',
    'config',
    'deployment',
    'link',
    'logger',
    'multiplier',
    'notify',
    'plotTimeSeries',
    'resources',
    'science',
    'simulator',
    'status',
    'transmission',
    'vessels',
    # Main classes
    'DataTransmitter',
    'Simulator',
    'save',
    'load',
]
