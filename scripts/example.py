"""
example.py - Simple Example for RT-Xmit

This is a basic example script demonstrating the workflow for setting up and
running a transmission simulation. A probe with a small battery carries one
direct antenna on a deployable boom and one internal antenna. Science data is
transmitted in two batches; a link outage interrupts the second batch, and the
unsent data is returned to the probe's container and sent again later.
"""

import rtxmit as rx

#------------------------------------------------------------------------------#
#    Set Up Simulation                                                         #
#------------------------------------------------------------------------------#

sim = rx.simulator.Simulator(name='Example',   # create a simulation object
                             sampleTime=0.5)   # half-second ticks
sim.runTime = 120                              # two minutes of simulated time

#------------------------------------------------------------------------------#
#    Vessel                                                                    #
#------------------------------------------------------------------------------#

probe = rx.vessels.Vessel(
    callSign='Probe',                          # vessel identifier
    pool=rx.resources.Battery(                 # shared ElectricCharge store
        capacity=150.0,                        # stored charge
        rechargeRate=0.5,                      # solar panel charge per second
    ),
    link=rx.link.LinkSchedule(                 # link to ground station
        outages=[(40.0, 55.0)],                # lost behind the moon
    ),
)

# Known science subjects
probe.subjects.add('crew@Orbit', 'Crew Report')
probe.subjects.add('temp@Orbit', 'Temperature Scan')
probe.subjects.add('seis@Surface', 'Seismic Scan')

## Antennas
boom = rx.deployment.AnimationReporter(duration=4.0)
dish = probe.loadAntenna(                      # stock part definition
    {'title': 'Communotron 16',
     'packetSize': '2',
     'packetInterval': '0.6',
     'packetResourceCost': '12'},
    reporters=[boom],                          # deploys with the boom
)
probe.addAntenna(rx.config.AntennaConfig(      # always-on internal antenna
    title='Probe Core',
    antennaType=rx.config.INTERNAL,
    telemetryConsumptionRate=0.05,
))

#------------------------------------------------------------------------------#
#    Science Data                                                              #
#------------------------------------------------------------------------------#

Item = rx.science.DataItem
dish.queueData([Item('Crew Report', 'crew@Orbit', 4.0),
                Item('Temperature Scan', 'temp@Orbit', 8.0)])
probe.container.returnItem(Item('Seismic Scan', 'seis@Surface', 20.0,
                                allowIncomplete=False))

#------------------------------------------------------------------------------#
#    Operator Actions                                                          #
#------------------------------------------------------------------------------#

sim.schedule(1.0, boom.deploy)                 # extend the boom
sim.schedule(6.0, dish.startTransmission)      # first batch
sim.schedule(30.0, probe.transmitAll)          # second batch, hits outage
sim.schedule(60.0, probe.transmitAll)          # resend returned data
sim.vessels = [probe]

#------------------------------------------------------------------------------#
#    Run Simulation                                                            #
#------------------------------------------------------------------------------#

print(dish.getInfo())                          # part info panel
sim.run()                                      # start the simulation
rx.simulator.save(sim)                         # save simulation data file
