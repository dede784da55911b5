import copy

import pytest

from ecoflow_worker.errors import NormalizationError
from ecoflow_worker.processors.quota import normalize_quota, quota_value


def test_positive_firmware_remaining_means_charging_regardless_of_watts():
    quota = {
        "bms_bmsStatus.soc": 40,
        "pd.wattsInSum": 0,
        "pd.wattsOutSum": 600,
        "pd.remainTime": 75,
    }
    reading = normalize_quota(quota)

    assert reading.status == "charging"
    assert reading.remaining_time == 75


def test_negative_firmware_remaining_means_discharging():
    quota = {
        "bms_bmsStatus.soc": 60,
        "pd.wattsInSum": 800,
        "pd.wattsOutSum": 20,
        "pd.remainTime": -300,
    }
    reading = normalize_quota(quota)

    assert reading.status == "discharging"
    assert reading.remaining_time == -300


def test_precise_firmware_minutes_beat_signed_fallback():
    charging = normalize_quota({
        "pd.remainTime": 60,
        "bms_emsStatus.chgRemainTime": 57,
        "bms_emsStatus.dsgRemainTime": 900,
    })
    discharging = normalize_quota({
        "pd.remainTime": -120,
        "bms_emsStatus.chgRemainTime": 5,
        "bms_emsStatus.dsgRemainTime": 133,
    })

    assert charging.remaining_time == 57
    assert discharging.remaining_time == -133


def test_zero_precise_minutes_fall_back_to_signed_field():
    reading = normalize_quota({"pd.remainTime": 45, "bms_emsStatus.chgRemainTime": 0})

    assert reading.status == "charging"
    assert reading.remaining_time == 45


def test_net_power_above_deadband_is_charging():
    reading = normalize_quota({"bms_bmsStatus.soc": 50, "pd.wattsInSum": 100, "pd.wattsOutSum": 85})

    assert reading.net_power == 15
    assert reading.status == "charging"


def test_net_power_inside_deadband_is_standby():
    reading = normalize_quota({"bms_bmsStatus.soc": 50, "pd.wattsInSum": 50, "pd.wattsOutSum": 55})

    assert reading.net_power == -5
    assert reading.status == "standby"


def test_deadband_edges_are_exclusive():
    assert normalize_quota({"bms_bmsStatus.soc": 50, "pd.wattsInSum": 110, "pd.wattsOutSum": 100}).status == "standby"
    assert normalize_quota({"bms_bmsStatus.soc": 50, "pd.wattsInSum": 100, "pd.wattsOutSum": 110}).status == "standby"
    assert normalize_quota({"bms_bmsStatus.soc": 50, "pd.wattsInSum": 100, "pd.wattsOutSum": 111}).status == "discharging"


def test_net_discharge_uses_minutes_to_empty():
    reading = normalize_quota({
        "bms_bmsStatus.soc": 70,
        "inv.outputWatts": 300,
        "bms_emsStatus.dsgRemainTime": 210,
    })

    assert reading.status == "discharging"
    assert reading.remaining_time == -210


@pytest.mark.parametrize("level, expected", [(97, "full"), (5, "low"), (50, "standby")])
def test_idle_status_follows_battery_level(level, expected):
    reading = normalize_quota({"bms_bmsStatus.soc": level, "pd.wattsInSum": 0, "pd.wattsOutSum": 0})

    assert reading.status == expected


def test_missing_battery_level_is_standby_not_low():
    reading = normalize_quota({"pd.wattsOutSum": 0, "bms_bmsStatus.temp": 25})

    assert reading.battery_level is None
    assert reading.status == "standby"


def test_totals_fall_back_to_rails_when_vendor_sums_missing():
    quota = {
        "inv.inputWatts": 100,
        "mppt.inWatts": 50,
        "inv.outputWatts": 20,
        "pd.carWatts": 10,
        "pd.usb1Watts": 1,
        "pd.usb2Watts": 2,
        "pd.typec1Watts": 3,
        "pd.typec2Watts": 4,
        "pd.qcUsb1Watts": 5,
        "pd.qcUsb2Watts": 6,
    }
    reading = normalize_quota(quota)

    assert reading.input_watts == 150
    assert reading.ac_input_watts == 100
    assert reading.dc_input_watts == 50
    assert reading.usb_output_watts == 21
    assert reading.dc_output_watts == 10
    assert reading.output_watts == 51
    assert reading.status == "charging"


def test_zero_output_sum_falls_through_to_output_total():
    reading = normalize_quota({"pd.wattsOutSum": 0, "pd.outputWatts": 240, "inv.outputWatts": 999})

    assert reading.output_watts == 240


def test_bms_remaining_used_as_last_resort():
    reading = normalize_quota({"bms_bmsStatus.soc": 50, "bms_bmsStatus.remainTime": 300})

    assert reading.status == "standby"
    assert reading.remaining_time == 300


def test_no_remaining_fields_gives_none():
    reading = normalize_quota({"bms_bmsStatus.soc": 50})

    assert reading.remaining_time is None


def test_string_and_garbage_values_are_tolerated():
    reading = normalize_quota({
        "bms_bmsStatus.soc": "88",
        "bms_bmsStatus.temp": "n/a",
        "inv.inputWatts": "120.5",
        "mppt.chgType": None,
    })

    assert reading.battery_level == 88
    assert reading.temperature is None
    assert reading.input_watts == 120.5
    assert reading.charging_type is None


def test_raw_data_is_passed_through_untouched():
    quota = {"bms_bmsStatus.soc": 61, "pd.remainTime": "-90", "vendor.unknownKey": "abc"}
    snapshot = copy.deepcopy(quota)

    reading = normalize_quota(quota)

    assert reading.raw_data is quota
    assert quota == snapshot


@pytest.mark.parametrize("quota", [None, {}])
def test_empty_quota_raises_normalization_error(quota):
    with pytest.raises(NormalizationError):
        normalize_quota(quota)


def test_quota_value_lookup():
    quota = {"a": 3, "b": "4.5", "c": "x", "d": True, "e": float("nan")}

    assert quota_value(quota, "a") == 3
    assert quota_value(quota, "b") == 4.5
    assert quota_value(quota, "c") is None
    assert quota_value(quota, "d") is None
    assert quota_value(quota, "e") is None
    assert quota_value(quota, "missing") is None
