"""
Real-time Poller for the content notification feed.

Example usage:
    from publish_alert.poller import RealtimePoller

    poller = RealtimePoller(orchestrator, poll_interval=15)

    async def on_report(report):
        print(f"{len(report.with_stamps())} articles with stamps")

    poller.add_callback(on_report)
    await poller.start()
"""

from .realtime_poller import RealtimePoller

__all__ = ['RealtimePoller']
