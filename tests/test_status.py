import pytest
from rtxmit.status import (DISABLE, ENABLE, START, STOP, StatusProjector,
                           statusLabel)
from rtxmit.science import DataItem
from rtxmit.deployment import FixedReporter
from conftest import runTicks

###############################################################################

class TestStatusLabel:

    @pytest.mark.parametrize('enabled,deployed,deployable,busy,label', [
        (True, True, True, True, 'Transmitting'),
        (True, False, True, False, 'Retracted'),
        (False, False, True, False, 'Retracted'),
        (False, True, True, False, 'Disabled'),
        (False, True, False, False, 'Disabled'),
        (True, True, False, False, 'Idle'),
    ])
    def test_label(self, enabled, deployed, deployable, busy, label):
        assert statusLabel(enabled, deployed, deployable, busy) == label

###############################################################################

class TestStatusProjector:

    def test_idle_usable_controls(self):
        sp = StatusProjector()
        sp.project(True, True, True, False)
        assert sp.controls == {START: True, STOP: False,
                               ENABLE: False, DISABLE: True}

    def test_busy_controls_keep_label(self):
        sp = StatusProjector()
        sp.label = 'Transmitting (40%)'
        assert sp.project(True, True, True, True) == 'Transmitting (40%)'
        assert sp.controls[STOP]
        assert not sp.controls[START]

    def test_coupled_antenna_hides_toggles(self):
        sp = StatusProjector()
        sp.project(False, False, True, False, canToggle=False)
        assert not sp.controls[ENABLE]
        assert not sp.controls[DISABLE]
        assert sp.label == 'Retracted'

###############################################################################

class TestAntennaStatus:

    def test_controls_track_cycle(self, makeAntenna):
        ant = makeAntenna()
        assert ant.status.controls[START]
        ant.queueData([DataItem('Crew Report', 'S1', 20.0)])
        ant.startTransmission()
        assert ant.status.controls[STOP]
        assert not ant.status.controls[START]
        runTicks(ant, 2)
        assert ant.status.controls[START]
        assert not ant.status.controls[STOP]

    def test_toggle_updates_controls(self, makeAntenna):
        ant = makeAntenna()
        assert ant.toggleAntenna() is False
        assert ant.status.label == 'Disabled'
        assert ant.status.controls[ENABLE]
        assert not ant.status.controls[START]
        assert ant.toggleAntenna() is True
        assert ant.status.label == 'Idle'

    def test_toggle_blocked_when_coupled(self, makeAntenna):
        ant = makeAntenna(reporters=[FixedReporter(1.0)], allowToggle=False)
        runTicks(ant, 1)
        assert ant.enabled
        assert ant.toggleAntenna() is True
        assert ant.enabled
        assert not ant.status.controls[DISABLE]
