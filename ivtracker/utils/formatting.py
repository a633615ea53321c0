"""Human-readable signal and summary formatting."""
from ivtracker.models import Comparison, VolStatus


VOL_PRICING = {
    VolStatus.HIGH_VOL: "Vol underpriced",
    VolStatus.LOW_VOL: "Vol overpriced",
    VolStatus.NORMAL: "Vol fairly priced",
}


def format_horizon_signal(ratio: float, horizon: str, status: VolStatus) -> str:
    """
    Format the signal string for one horizon.

    Args:
        ratio: Surprise ratio (actual range / implied daily move)
        horizon: "weekly" or "monthly"
        status: Classification of the ratio

    Returns:
        e.g. "Actual 1.53x weekly implied | Vol underpriced"
    """
    return f"Actual {ratio:.2f}x {horizon} implied | {VOL_PRICING[status]}"


def format_comparison_summary(comparison: Comparison) -> str:
    """One-line summary of a comparison for logs."""
    return (
        f"{comparison.snapshot_date} +{comparison.time_elapsed_hours:.1f}h | "
        f"Range ${comparison.actual_range:,.0f} ({comparison.actual_range_percent:.2f}%) | "
        f"W {comparison.weekly.surprise_ratio:.2f}x {comparison.weekly.status.value} | "
        f"M {comparison.monthly.surprise_ratio:.2f}x {comparison.monthly.status.value}"
    )
