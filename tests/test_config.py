import construct as cst
import pytest
from rtxmit import config as cfg

###############################################################################

class TestFromDict:

    def test_empty_node_derives_rates(self):
        c = cfg.AntennaConfig.fromDict({})
        assert c.transmitConsumptionRate == pytest.approx(5.0)
        assert c.telemetryConsumptionRate == pytest.approx(0.5)
        assert c.transmitDataRate == pytest.approx(0.5)

    def test_string_values_coerced(self):
        node = {'title': 'HG-5',
                'antennaType': 'RELAY',
                'antennaEnabled': 'False',
                'xmitIncomplete': 'true',
                'packetSize': '4',
                'packetInterval': '2',
                'packetResourceCost': '20'}
        c = cfg.AntennaConfig.fromDict(node)
        assert c.title == 'HG-5'
        assert c.antennaType == cfg.RELAY
        assert c.antennaEnabled is False
        assert c.xmitIncomplete is True
        assert c.transmitDataRate == pytest.approx(0.5)
        assert c.transmitConsumptionRate == pytest.approx(2.5)
        assert c.telemetryConsumptionRate == pytest.approx(0.25)

    def test_explicit_rates_kept(self):
        node = {'transmitConsumptionRate': 8.0, 'transmitDataRate': 3.0}
        c = cfg.AntennaConfig.fromDict(node)
        assert c.transmitConsumptionRate == 8.0
        assert c.telemetryConsumptionRate == pytest.approx(0.8)
        assert c.transmitDataRate == 3.0

    def test_to_dict_feeds_from_dict(self):
        c = cfg.AntennaConfig(title='HG-5', transmitDataRate=2.0)
        node = c.toDict()
        assert node['antennaType'] == cfg.DIRECT
        assert cfg.AntennaConfig.fromDict(node) == c

    def test_unknown_keys_ignored(self):
        c = cfg.AntennaConfig.fromDict({'antennaRange': '1e9'})
        assert not hasattr(c, 'antennaRange')

    @pytest.mark.parametrize('node', [{'antennaType': 'LASER'},
                                      {'packetInterval': 0}])
    def test_invalid_node(self, node):
        with pytest.raises(ValueError):
            cfg.AntennaConfig.fromDict(node)

###############################################################################

class TestBinary:

    def test_pack_layout(self):
        c = cfg.AntennaConfig(antennaType=cfg.INTERNAL, deployed=True,
                              transmitDataRate=1.25)
        data = c.pack()
        assert len(data) == 64
        assert data[:4] == b'RTX1'
        back = cfg.AntennaConfig.unpack(data, title=c.title)
        assert back == c

    def test_bad_magic(self):
        data = b'XXXX' + cfg.AntennaConfig().pack()[4:]
        with pytest.raises(cst.ConstructError):
            cfg.AntennaConfig.unpack(data)

###############################################################################

class TestSettings:

    def test_params_range(self):
        assert cfg.TransmitterParams().consumptionMultiplier == 1.0
        with pytest.raises(ValueError):
            cfg.TransmitterParams(2.5)

    @pytest.mark.parametrize('state,flight', [
        (cfg.StartState.NONE, False),
        (cfg.StartState.EDITOR, False),
        (cfg.StartState.PRELAUNCH, True),
        (cfg.StartState.ORBITAL, True),
    ])
    def test_in_flight(self, state, flight):
        assert cfg.StartState.inFlight(state) is flight
