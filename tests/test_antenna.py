import pytest
from rtxmit import config as cfg
from rtxmit.antenna import DataTransmitter
from rtxmit.link import AlwaysLink, LinkSchedule
from rtxmit.multiplier import BANDWIDTH, CONSUMPTION
from rtxmit.science import DataItem
from conftest import runTicks

###############################################################################

class TestCapabilities:

    def test_internal_antenna_cannot_transmit(self, makeAntenna, board):
        ant = makeAntenna(config={'antennaType': cfg.INTERNAL})
        assert ant.canComm()
        assert not ant.canTransmit()
        ant.queueData([DataItem('Crew Report', 'S1', 10.0)])
        assert not ant.startTransmission()
        assert not ant.busy

    def test_link_controls_comm(self, makeAntenna):
        ant = makeAntenna(link=AlwaysLink(up=False))
        assert not ant.canComm()
        assert not ant.canTransmit()

    @pytest.mark.parametrize('snapshot,linkUp,expected', [
        (None, True, True),
        (None, False, False),
        ({}, True, True),
        ({'antennaEnabled': 'True'}, True, True),
        ({'antennaEnabled': 'False'}, True, False),
        ({'antennaEnabled': 'True'}, False, False),
    ])
    def test_can_comm_unloaded(self, makeAntenna, snapshot, linkUp,
                               expected):
        ant = makeAntenna(link=AlwaysLink(up=linkUp))
        assert ant.canCommUnloaded(snapshot) is expected

    def test_link_schedule_outage(self, makeAntenna):
        link = LinkSchedule([(2.0, 4.0)])
        ant = makeAntenna(link=link)
        link.time = 1.99
        assert ant.canTransmit()
        link.time = 2.0
        assert not ant.canTransmit()
        link.time = 4.0
        assert ant.canTransmit()

###############################################################################

class TestInfo:

    def test_direct_info(self):
        ant = DataTransmitter(cfg.AntennaConfig())
        info = ant.getInfo()
        assert "Antenna Type: Direct" in info
        assert "Antenna Power Rating: 500k" in info
        assert "Bandwidth: 0.5 Mits/s" in info
        assert "Active antenna requires: 0.1 ElectricCharge/s" in info
        assert "Science transmission requires: 5 ElectricCharge/s" in info

    def test_internal_info(self):
        ant = DataTransmitter(cfg.AntennaConfig(antennaType=cfg.INTERNAL,
                                                antennaPower=5000.0))
        info = ant.getInfo()
        assert "Antenna Type: Internal" in info
        assert "Antenna Power Rating: 5k" in info
        assert "Bandwidth" not in info
        assert "Cannot transmit Science" in info

    def test_info_uses_effective_rates(self):
        ant = DataTransmitter(cfg.AntennaConfig())
        ant.setMultiplier(BANDWIDTH, 'booster', 4.0)
        assert "Bandwidth: 2 Mits/s" in ant.getInfo()

###############################################################################

class TestLifecycle:

    def test_on_load_derives_rates(self):
        ant = DataTransmitter()
        ant.onLoad({'title': 'Stock', 'packetSize': '2',
                    'packetInterval': '0.5', 'packetResourceCost': '10'})
        assert ant.title == 'Stock'
        assert ant.effectiveBandwidth == pytest.approx(1.0)
        assert ant.effectiveTransmitConsumption == pytest.approx(5.0)
        assert ant.effectiveTelemetryConsumption == pytest.approx(0.5)

    def test_on_load_keeps_multipliers(self):
        ant = DataTransmitter()
        ant.setMultiplier(CONSUMPTION, 'efficient', 0.5)
        ant.onLoad({'transmitConsumptionRate': '8'})
        assert ant.effectiveTransmitConsumption == pytest.approx(4.0)

    def test_save_excludes_multipliers(self, makeAntenna):
        ant = makeAntenna()
        ant.setMultiplier(BANDWIDTH, 'booster', 2.0)
        ant.toggleAntenna()
        ant.transmitIncompleteToggle()
        saved = ant.save()
        assert saved.transmitDataRate == 10.0
        assert saved.antennaEnabled is False
        assert saved.xmitIncomplete is True
        assert saved.deployed is True

    def test_save_then_reload(self, makeAntenna):
        ant = makeAntenna(config={'xmitIncomplete': True})
        other = DataTransmitter(ant.save())
        assert other.xmitIncomplete
        assert other.effectiveBandwidth == ant.effectiveBandwidth

    def test_global_settings_scale_telemetry_only(self):
        ant = DataTransmitter(params=cfg.TransmitterParams(2.0))
        assert ant.multipliers[CONSUMPTION].get('settings') is None
        assert ant.effectiveTelemetryConsumption == pytest.approx(0.2)
        assert ant.effectiveTransmitConsumption == pytest.approx(5.0)

    def test_transmit_data_starts_cycle(self, makeAntenna):
        ant = makeAntenna()
        assert ant.transmitData([DataItem('Crew Report', 'S1', 10.0)])
        assert ant.busy
        runTicks(ant, 1)
        assert not ant.busy

    def test_str_summary(self, makeAntenna):
        text = str(makeAntenna())
        assert text.startswith('Comm16 (Direct)')
        assert 'Bandwidth:   10.000 Mits/s' in text
