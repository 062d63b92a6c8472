# session_clock/svg_clock.py
"""24-hour SVG clock face: hour marks, session arcs, overlap highlight, hands."""
import math
from html import escape
from typing import Dict, Iterable, Optional

from session_clock.analytics import SessionAnalytics
from session_clock.clock import ClockReading
from session_clock.utils.sessions import Session, VolatilityWindow

CX = 200
CY = 200
VIEWBOX = 460
OFFSET = 30

DEFAULT_ARC_RADIUS = 160
OVERLAP_RADIUS = 150
SESSION_RADII = (156, 144)

HOUR_MARK_INNER, HOUR_MARK_OUTER, HOUR_LABEL_RADIUS = 178, 188, 220
MINUTE_TICK_INNER, MINUTE_TICK_OUTER = 170, 175
HOUR_HAND, MINUTE_HAND, SECOND_HAND = 110, 150, 165


# ─────────────────────────────────────────────
# Geometry
# ─────────────────────────────────────────────
def hour_angle(hour: float) -> float:
    """Degrees on a 24h dial, 00:00 at the top."""
    return (hour / 24) * 360 - 90


def polar(angle_deg: float, radius: float):
    rad = math.radians(angle_deg)
    return CX + radius * math.cos(rad), CY + radius * math.sin(rad)


def arc_path(open_hour: float, close_hour: float, radius: float = DEFAULT_ARC_RADIUS) -> str:
    """SVG path for a clockwise arc from open to close on the 24h dial."""
    sx, sy = polar(hour_angle(open_hour), radius)
    ex, ey = polar(hour_angle(close_hour), radius)
    span = 24 - open_hour + close_hour if close_hour < open_hour else close_hour - open_hour
    if span in (0, 24):
        # full circle: two half arcs, a single arc with equal endpoints draws nothing
        mx, my = polar(hour_angle(open_hour + 12), radius)
        return (f"M {sx:.3f} {sy:.3f} A {radius} {radius} 0 1 1 {mx:.3f} {my:.3f} "
                f"A {radius} {radius} 0 1 1 {sx:.3f} {sy:.3f}")
    large_arc = 1 if span > 12 else 0
    return f"M {sx:.3f} {sy:.3f} A {radius} {radius} 0 {large_arc} 1 {ex:.3f} {ey:.3f}"


def hand_positions(reading: ClockReading) -> Dict[str, tuple]:
    return {
        "hour": polar(hour_angle(reading.total_hours), HOUR_HAND),
        "minute": polar((reading.minutes / 60) * 360 - 90, MINUTE_HAND),
        "second": polar((reading.seconds / 60) * 360 - 90, SECOND_HAND),
    }


def session_radius(index: int) -> int:
    """Alternate radii so neighbouring arcs do not sit on top of each other."""
    return SESSION_RADII[index % len(SESSION_RADII)]


# ─────────────────────────────────────────────
# Rendering
# ─────────────────────────────────────────────
def _hour_marks() -> Iterable[str]:
    for i in range(24):
        angle = hour_angle(i)
        x1, y1 = polar(angle, HOUR_MARK_INNER)
        x2, y2 = polar(angle, HOUR_MARK_OUTER)
        tx, ty = polar(angle, HOUR_LABEL_RADIUS)
        major = i % 6 == 0
        yield (f'<line x1="{x1:.2f}" y1="{y1:.2f}" x2="{x2:.2f}" y2="{y2:.2f}" '
               f'stroke="{"#71717a" if major else "#3f3f46"}" stroke-width="{2 if major else 1}"/>')
        yield (f'<text x="{tx:.2f}" y="{ty:.2f}" fill="{"#e4e4e7" if major else "#71717a"}" '
               f'font-size="{14 if major else 11}" font-weight="{"bold" if major else "normal"}" '
               f'text-anchor="middle" dominant-baseline="middle" font-family="monospace">{i:02d}</text>')


def _minute_ticks() -> Iterable[str]:
    for i in range(60):
        angle = (i / 60) * 360 - 90
        x1, y1 = polar(angle, MINUTE_TICK_INNER)
        x2, y2 = polar(angle, MINUTE_TICK_OUTER)
        five = i % 5 == 0
        yield (f'<line x1="{x1:.2f}" y1="{y1:.2f}" x2="{x2:.2f}" y2="{y2:.2f}" '
               f'stroke="{"#52525b" if five else "#27272a"}" stroke-width="{1.5 if five else 0.5}"/>')


def _session_arc(session: Session, radius: int, active: bool) -> str:
    return (f'<path class="session-arc{" active" if active else ""}" data-session="{escape(session.id)}" '
            f'd="{arc_path(session.open, session.close, radius)}" fill="none" stroke="{escape(session.color)}" '
            f'stroke-width="{20 if active else 16}" stroke-linecap="round">'
            f'<title>{escape(session.name)} {session.open:02d}:00-{session.close:02d}:00 UTC</title></path>')


def _overlap_arc(window: Optional[VolatilityWindow]) -> str:
    if window is None:
        return ""
    return (f'<path class="overlap-arc" d="{arc_path(window.start, window.end, OVERLAP_RADIUS)}" '
            f'fill="none" stroke="rgba(255,165,0,0.15)" stroke-width="16" stroke-linecap="round"/>')


def _hands(reading: ClockReading) -> Iterable[str]:
    hands = hand_positions(reading)
    mx, my = hands["minute"]
    hx, hy = hands["hour"]
    sx, sy = hands["second"]
    yield f'<line x1="{CX}" y1="{CY}" x2="{mx:.2f}" y2="{my:.2f}" stroke="#a1a1aa" stroke-width="3" stroke-linecap="round"/>'
    yield f'<line x1="{CX}" y1="{CY}" x2="{hx:.2f}" y2="{hy:.2f}" stroke="white" stroke-width="5" stroke-linecap="round"/>'
    yield f'<line x1="{CX}" y1="{CY}" x2="{sx:.2f}" y2="{sy:.2f}" stroke="#10b981" stroke-width="1.5" stroke-linecap="round"/>'
    yield f'<circle cx="{CX}" cy="{CY}" r="6" fill="white"/>'
    yield f'<circle cx="{CX}" cy="{CY}" r="2" fill="#18181b"/>'


def render_clock_svg(reading: ClockReading, analytics: SessionAnalytics) -> str:
    """Render the full clock face for a UTC reading and its analytics snapshot."""
    active_ids = {s.id for s in analytics.active_sessions}
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {VIEWBOX} {VIEWBOX}" class="session-clock">',
        f'<g transform="translate({OFFSET}, {OFFSET})">',
        f'<circle cx="{CX}" cy="{CY}" r="180" fill="#18181b" stroke="#3f3f46" stroke-width="1"/>',
    ]
    parts.extend(_minute_ticks())
    parts.extend(_hour_marks())
    parts.append(_overlap_arc(analytics.volatility_window))
    for index, session in enumerate(analytics.sessions):
        parts.append(_session_arc(session, session_radius(index), session.id in active_ids))
    parts.extend(_hands(reading))
    parts.append("</g></svg>")
    return "\n".join(p for p in parts if p)
