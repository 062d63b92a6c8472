# session_clock/dashboard.py
"""Text and HTML views over one analytics snapshot. No session logic lives here."""
import os
import tempfile
from html import escape
from pathlib import Path
from typing import List, Optional

from loguru import logger

from session_clock.analytics import SessionAnalytics
from session_clock.clock import ClockReading
from session_clock.rates import RatesFeed
from session_clock.svg_clock import render_clock_svg

FOCUS_PAIR = "EUR/USD"
HTML_REFRESH_SECONDS = 1


def progress_bar(pct: float, width: int = 10) -> str:
    filled = int(max(0.0, min(100.0, pct)) / 100 * width)
    return "█" * filled + "░" * (width - filled)


def _pair_line(pairs, rates: Optional[RatesFeed]) -> str:
    if rates is None:
        return ", ".join(pairs)
    return ", ".join(f"{p} {rates.display_price(p)}" for p in pairs)


# ─────────────────────────────────────────────
# Terminal view
# ─────────────────────────────────────────────
def render_text(utc: ClockReading, local: ClockReading, analytics: SessionAnalytics,
                local_mode: bool = False, rates: Optional[RatesFeed] = None,
                news: Optional[List[dict]] = None) -> str:
    shown = local if local_mode else utc
    zone = shown.timezone if local_mode else "UTC (+00:00)"
    lines = [
        "🕒 *SESSION CLOCK* | Global Forex Trading Dashboard",
        "━━━━━━━━━━━━━━━━━━━━━━━",
        f"{'Your Local Time' if local_mode else 'Coordinated Universal Time'}: {shown.hhmmss()} ({zone})",
    ]

    window = analytics.volatility_window
    if analytics.is_volatile and window is not None:
        lines.append(f"⚡ HIGH VOLATILITY: {window.name} active ({window.start:02d}:00-{window.end:02d}:00 UTC)")

    lines.append("━━━━━━━━━━━━━━━━━━━━━━━")
    lines.append("🌍 Active Sessions:")
    if analytics.active_sessions:
        for s in analytics.active_sessions:
            lines.append(f"  • {s.name} ({s.region}) OPEN since {s.open:02d}:00 UTC")
    else:
        lines.append("  No major markets currently open.")

    lines.append("━━━━━━━━━━━━━━━━━━━━━━━")
    lines.append("📊 Market Guide:")
    for s in analytics.sessions:
        st = analytics.statuses[s.id]
        if st.is_open:
            marker = " 🔥 power hour" if st.is_power_hour else ""
            detail = f"closes in {st.countdown}  `{progress_bar(st.progress)}` {st.progress:5.1f}%{marker}"
        else:
            detail = f"opens in {st.countdown}"
        lines.append(f"  {'🟢' if st.is_open else '🔴'} {s.name:<10} {s.open:02d}:00-{s.close:02d}:00  {detail}")
        if s.currency_pairs:
            lines.append(f"      {_pair_line(s.currency_pairs, rates)}")

    if rates is not None:
        lines.append("━━━━━━━━━━━━━━━━━━━━━━━")
        lines.append(f"💱 Focus Pair {FOCUS_PAIR}: {rates.display_price(FOCUS_PAIR)}")

    if news:
        lines.append("━━━━━━━━━━━━━━━━━━━━━━━")
        lines.append("🗞️ Top Headlines:")
        for n in news[:5]:
            lines.append(f"  • {n.get('title', '')[:100]} ({n.get('source', '')})")

    return "\n".join(lines)


# ─────────────────────────────────────────────
# HTML view
# ─────────────────────────────────────────────
PAGE_STYLE = """
body { background:#0a0a0b; color:#f4f4f5; font-family:system-ui,sans-serif; margin:0; padding:2rem; }
.grid { display:grid; grid-template-columns:1fr 1.4fr 1fr; gap:2rem; align-items:start; }
.card { background:#121214; border:1px solid #27272a; border-radius:1.5rem; padding:1.5rem; }
.time { font-size:3.5rem; font-weight:900; font-variant-numeric:tabular-nums; margin:0; }
.muted { color:#71717a; font-size:.8rem; }
.badge { color:#f59e0b; border:1px solid #f59e0b55; border-radius:999px; padding:.1rem .6rem; font-size:.7rem; }
.bar { height:4px; background:#27272a; border-radius:4px; overflow:hidden; }
.bar > div { height:100%; }
.session { margin-bottom:1rem; }
.session-arc.active { filter:drop-shadow(0 0 6px currentColor); }
"""


def _session_rows(analytics: SessionAnalytics, rates: Optional[RatesFeed]) -> str:
    rows = []
    for s in analytics.sessions:
        st = analytics.statuses[s.id]
        state = "OPEN" if st.is_open else "CLOSED"
        when = f"closes in {st.countdown}" if st.is_open else f"opens in {st.countdown}"
        power = ' <span class="badge">POWER HOUR</span>' if st.is_power_hour else ""
        pairs = escape(_pair_line(s.currency_pairs, rates))
        rows.append(
            f'<div class="session"><strong style="color:{escape(s.color)}">{escape(s.name)}</strong> '
            f'<span class="muted">{s.open:02d}:00 - {s.close:02d}:00 UTC | {state} | {when}</span>{power}'
            f'<div class="bar"><div style="width:{st.progress:.1f}%;background:{escape(s.color)}"></div></div>'
            f'<div class="muted">{pairs}</div></div>'
        )
    return "\n".join(rows)


def render_html(utc: ClockReading, local: ClockReading, analytics: SessionAnalytics,
                local_mode: bool = False, rates: Optional[RatesFeed] = None,
                news: Optional[List[dict]] = None, refresh_seconds: int = HTML_REFRESH_SECONDS) -> str:
    shown = local if local_mode else utc
    label = "Your Local Time" if local_mode else "Coordinated Universal Time"
    zone = shown.timezone if local_mode else "UTC (+00:00)"

    if analytics.active_sessions:
        active = "".join(f"<li>{escape(s.name)} <span class='muted'>{escape(s.region)}</span></li>"
                         for s in analytics.active_sessions)
        active_html = f"<ul>{active}</ul>"
    else:
        active_html = '<p class="muted"><em>No major markets currently open.</em></p>'

    volatile_html = ""
    window = analytics.volatility_window
    if analytics.is_volatile and window is not None:
        volatile_html = (f'<div class="card"><span class="badge">HIGH VOLATILITY</span>'
                         f'<p>The <strong>{escape(window.name)}</strong> is currently active. '
                         f'{escape(window.description)}.</p></div>')

    news_html = ""
    if news:
        items = "".join(f'<li><a href="{escape(n.get("link", ""))}">{escape(n.get("title", ""))}</a> '
                        f'<span class="muted">{escape(n.get("source", ""))}</span></li>' for n in news)
        news_html = f'<div class="card"><h3>Headlines</h3><ul>{items}</ul></div>'

    focus_html = ""
    if rates is not None:
        focus_html = (f'<div class="card"><h3>Focus Pair</h3><p><strong>{FOCUS_PAIR}</strong> '
                      f'{escape(rates.display_price(FOCUS_PAIR))}</p></div>')

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta http-equiv="refresh" content="{refresh_seconds}">
<title>Session Clock {utc.hhmm()} UTC</title>
<style>{PAGE_STYLE}</style>
</head>
<body>
<h1>SESSION CLOCK</h1>
<p class="muted">Global Forex Trading Dashboard</p>
<div class="grid">
<div>
<div class="card"><p class="muted">{label}</p><p class="time">{shown.hhmm()}</p><p class="muted">{escape(zone)}</p></div>
<div class="card"><h3>Active Sessions</h3>{active_html}</div>
{volatile_html}
</div>
<div>{render_clock_svg(utc, analytics)}</div>
<div>
<div class="card"><h3>Market Guide</h3>{_session_rows(analytics, rates)}</div>
{focus_html}
{news_html}
</div>
</div>
<footer class="muted">Server Time: {utc.hhmm()} UTC</footer>
</body>
</html>
"""


def write_html(path: str, page: str) -> Path:
    """Write atomically so a browser refresh never sees a half-written page."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(page)
        os.replace(tmp, target)
    except OSError:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    logger.debug(f"Dashboard written → {target}")
    return target
