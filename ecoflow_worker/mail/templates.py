from dataclasses import dataclass
from html import escape


_PAGE_OPEN = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><meta name="viewport" content="width=device-width, initial-scale=1"></head>
<body style="font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;line-height:1.6;color:#333;margin:0;padding:20px;background-color:#f4f4f4;">
<div style="max-width:600px;margin:0 auto;background:#fff;border-radius:8px;overflow:hidden;box-shadow:0 2px 10px rgba(0,0,0,0.1);">
  <div style="background:linear-gradient(135deg,#44af21,#00c356);color:#fff;padding:30px;text-align:center;">
    <h1 style="margin:0;font-size:24px;">{heading}</h1>
  </div>
"""

_PAGE_CLOSE = """  <div style="background:#f8f9fa;padding:20px;text-align:center;font-size:14px;color:#6c757d;">
    <p>{footer}</p>
  </div>
</div>
</body></html>"""


@dataclass(frozen=True)
class AlertTemplate:
    subject: str
    title: str
    message: str
    action: str
    color: str


ALERT_TEMPLATES = {
    "BATTERY_LOW": AlertTemplate(
        subject="\U0001f50b Low Battery Alert - {device}",
        title="Low Battery Warning",
        message="Your device battery level has dropped to {value}%, below your threshold of {threshold}%.",
        action="Consider charging your device soon to avoid power loss.",
        color="#f59e0b",
    ),
    "TEMPERATURE_HIGH": AlertTemplate(
        subject="\U0001f321️ High Temperature Alert - {device}",
        title="Temperature Warning",
        message="Device temperature has reached {value}°C, exceeding the safe threshold of {threshold}°C.",
        action="Please ensure proper ventilation and check for any blockages.",
        color="#f97316",
    ),
    "DEVICE_OFFLINE": AlertTemplate(
        subject="\U0001f4e1 Device Offline - {device}",
        title="Device Connection Lost",
        message="Your device has gone offline and is no longer sending data.",
        action="Please check your device connection and network status.",
        color="#ef4444",
    ),
}

# notification log type per alert
ALERT_LOG_TYPES = {
    "BATTERY_LOW": "device_alert_low_battery",
    "TEMPERATURE_HIGH": "device_alert_high_temperature",
    "DEVICE_OFFLINE": "device_alert_offline",
}


def format_number(value) -> str:
    if value is None:
        return "N/A"
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return f"{number:.1f}"


def alert_email(
    alert_type: str,
    device_name: str,
    device_sn: str,
    value,
    threshold,
    time: str,
    dashboard_url: str,
) -> tuple[str, str]:
    """Return ``(subject, html)`` for a device alert email."""
    template = ALERT_TEMPLATES[alert_type]
    subject = template.subject.format(device=device_name)
    message = template.message.format(value=format_number(value), threshold=format_number(threshold))
    body = f"""  <div style="padding:30px;">
    <div style="background:#fff3cd;border:1px solid {template.color};border-radius:6px;padding:20px;margin:20px 0;">
      <div style="font-size:18px;font-weight:600;margin-bottom:10px;color:{template.color};">{template.title}</div>
      <div style="margin-bottom:15px;color:#333;">{escape(message)}</div>
      <div style="font-weight:500;color:#721c24;background:#f8d7da;padding:10px;border-radius:4px;border-left:4px solid {template.color};">{template.action}</div>
    </div>
    <div style="background:#f8f9fa;padding:15px;border-radius:6px;margin:20px 0;">
      <h3 style="margin:0 0 10px;font-size:16px;color:#495057;">Device Information</h3>
      <p style="margin:5px 0;"><strong>Device:</strong> {escape(device_name)}</p>
      <p style="margin:5px 0;"><strong>Serial:</strong> {escape(device_sn)}</p>
      <p style="margin:5px 0;"><strong>Time:</strong> {escape(time)}</p>
    </div>
    <p>View your device in your <a href="{dashboard_url}/dashboard" style="color:#44af21;">EcoFlow Dashboard</a>.</p>
  </div>
"""
    footer = f'<a href="{dashboard_url}/settings" style="color:#44af21;">Manage notification preferences</a>'
    html = _PAGE_OPEN.format(heading="EcoFlow Dashboard Alert") + body + _PAGE_CLOSE.format(footer=footer)
    return subject, html


def backup_email(
    user_name: str,
    device_count: int,
    reading_count: int,
    date_range: str,
    generated_at: str,
    dashboard_url: str,
) -> str:
    body = f"""  <div style="padding:30px;">
    <p>Hi {escape(user_name)},</p>
    <p>Your scheduled data backup is attached as a JSON file. Here's a summary:</p>
    <div style="background:#f8f9fa;padding:15px;border-radius:6px;margin:20px 0;">
      <h3 style="margin:0 0 10px;font-size:16px;color:#495057;">Backup Summary</h3>
      <p style="margin:5px 0;"><strong>Devices:</strong> {device_count}</p>
      <p style="margin:5px 0;"><strong>Readings:</strong> {reading_count}</p>
      <p style="margin:5px 0;"><strong>Date Range:</strong> {escape(date_range)}</p>
      <p style="margin:5px 0;"><strong>Generated:</strong> {escape(generated_at)}</p>
    </div>
    <p>You can also manually export your data from your <a href="{dashboard_url}/settings" style="color:#44af21;">Settings page</a>.</p>
  </div>
"""
    footer = (
        "To change backup frequency or disable automatic backups, visit your "
        f'<a href="{dashboard_url}/settings" style="color:#44af21;">Settings</a>.'
    )
    return _PAGE_OPEN.format(heading="\U0001f4e6 EcoFlow Data Backup") + body + _PAGE_CLOSE.format(footer=footer)
