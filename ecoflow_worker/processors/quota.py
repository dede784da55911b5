"""Normalisation of raw EcoFlow quota payloads into canonical readings.

A quota is the vendor's flat, untyped snapshot of a device: dotted
pseudo-path keys (``bms_bmsStatus.soc``, ``inv.outputWatts`` ...) mapped to
numbers or numeric strings. Key sets differ between device families, so
every lookup here tolerates missing or garbage values.

Direction of power flow is decided on *net* power. A station can charge
from solar while powering a load, so "input present" does not mean
"charging". The firmware's signed ``pd.remainTime`` already accounts for
that and wins whenever it is nonzero; otherwise net power decides, with a
10 W deadband to keep idle noise from flapping the status.
"""
from dataclasses import dataclass, field
from typing import Any, Mapping

from ecoflow_worker.errors import NormalizationError


NET_POWER_DEADBAND_WATTS = 10
FULL_BATTERY_LEVEL = 95
LOW_BATTERY_LEVEL = 10

STATUS_CHARGING = "charging"
STATUS_DISCHARGING = "discharging"
STATUS_STANDBY = "standby"
STATUS_FULL = "full"
STATUS_LOW = "low"

USB_OUTPUT_KEYS = (
    "pd.usb1Watts",
    "pd.usb2Watts",
    "pd.typec1Watts",
    "pd.typec2Watts",
    "pd.qcUsb1Watts",
    "pd.qcUsb2Watts",
)


@dataclass(frozen=True)
class Reading:
    battery_level: float | None
    input_watts: float
    ac_input_watts: float
    dc_input_watts: float
    charging_type: float | None
    output_watts: float
    ac_output_watts: float
    dc_output_watts: float
    usb_output_watts: float
    remaining_time: float | None
    temperature: float | None
    status: str
    raw_data: Mapping[str, Any] = field(repr=False)

    @property
    def net_power(self) -> float:
        return self.input_watts - self.output_watts


def quota_value(quota: Mapping[str, Any], key: str) -> float | None:
    value = quota.get(key)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    if number != number:  # NaN
        return None
    return number


def _watts(quota: Mapping[str, Any], key: str) -> float:
    return quota_value(quota, key) or 0.0


def _first_nonzero(*values: float | None) -> float | None:
    for value in values:
        if value:
            return value
    return None


def _direction(pd_remain: float | None, net_power: float) -> tuple[bool, bool]:
    if pd_remain:
        return pd_remain > 0, pd_remain < 0
    return net_power > NET_POWER_DEADBAND_WATTS, net_power < -NET_POWER_DEADBAND_WATTS


def _remaining_time(quota: Mapping[str, Any], charging: bool, discharging: bool, pd_remain: float | None) -> float | None:
    chg_remain = quota_value(quota, "bms_emsStatus.chgRemainTime")
    dsg_remain = quota_value(quota, "bms_emsStatus.dsgRemainTime")

    if charging and chg_remain and chg_remain > 0:
        return chg_remain
    if discharging and dsg_remain and dsg_remain > 0:
        return -dsg_remain
    if pd_remain:
        return pd_remain
    return quota_value(quota, "bms_bmsStatus.remainTime")


def _status(charging: bool, discharging: bool, battery_level: float | None) -> str:
    if charging:
        return STATUS_CHARGING
    if discharging:
        return STATUS_DISCHARGING
    if battery_level is not None and battery_level > FULL_BATTERY_LEVEL:
        return STATUS_FULL
    if battery_level is not None and battery_level < LOW_BATTERY_LEVEL:
        return STATUS_LOW
    return STATUS_STANDBY


def normalize_quota(quota: Mapping[str, Any] | None) -> Reading:
    """Build a :class:`Reading` from a quota payload.

    Raises :class:`NormalizationError` when the payload is ``None`` or empty.
    ``raw_data`` on the result is the very mapping that was passed in.
    """
    if not quota:
        raise NormalizationError("quota payload is empty")

    ac_input = _watts(quota, "inv.inputWatts")
    dc_input = _watts(quota, "mppt.inWatts")
    total_input = _first_nonzero(quota_value(quota, "pd.wattsInSum")) or ac_input + dc_input

    ac_output = _watts(quota, "inv.outputWatts")
    dc_output = _watts(quota, "pd.carWatts")
    usb_output = sum(_watts(quota, key) for key in USB_OUTPUT_KEYS)
    total_output = _first_nonzero(
        quota_value(quota, "pd.wattsOutSum"),
        quota_value(quota, "pd.outputWatts"),
    ) or ac_output + dc_output + usb_output

    battery_level = quota_value(quota, "bms_bmsStatus.soc")
    pd_remain = quota_value(quota, "pd.remainTime")
    charging, discharging = _direction(pd_remain, total_input - total_output)

    return Reading(
        battery_level=battery_level,
        input_watts=total_input,
        ac_input_watts=ac_input,
        dc_input_watts=dc_input,
        charging_type=quota_value(quota, "mppt.chgType"),
        output_watts=total_output,
        ac_output_watts=ac_output,
        dc_output_watts=dc_output,
        usb_output_watts=usb_output,
        remaining_time=_remaining_time(quota, charging, discharging, pd_remain),
        temperature=quota_value(quota, "bms_bmsStatus.temp"),
        status=_status(charging, discharging, battery_level),
        raw_data=quota,
    )
