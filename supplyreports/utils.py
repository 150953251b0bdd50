from datetime import date, datetime, timezone


def get_date_suffix_for_filename(day: date = None) -> str:
    """Returns the date as a YYYY-MM-DD string for filenames."""
    return (day or date.today()).strftime("%Y-%m-%d")


def local_today(now: datetime = None) -> date:
    """
    Local calendar date for an aware timestamp (today when omitted).
    Expiry is counted in local calendar days, not UTC ones.
    """
    if now is None:
        return date.today()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone().date()
