#!filepath: tickreplay/utils/datetime_utils.py
from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Union

MS_PER_SECOND = 1_000
MS_PER_DAY = 86_400_000


class DateTimeUtils:
    """
    回测统一时间语义：epoch 毫秒（UTC, int）
    """

    TZ = timezone.utc

    # ================================================================
    # parse(): str / datetime / int → epoch ms
    # ================================================================
    @classmethod
    def to_ms(cls, ts: Union[int, str, datetime, date]) -> int:
        if isinstance(ts, bool):
            raise TypeError(f"不支持的时间类型: {type(ts)}")

        if isinstance(ts, int):
            s = str(abs(ts))
            if len(s) <= 10:   # 秒
                return ts * MS_PER_SECOND
            if len(s) <= 13:
                return ts
            if len(s) <= 16:
                return ts // 1_000
            return ts // 1_000_000

        if isinstance(ts, datetime):
            dt = ts if ts.tzinfo else ts.replace(tzinfo=cls.TZ)
            return int(round(dt.timestamp() * MS_PER_SECOND))

        if isinstance(ts, date):
            return cls.to_ms(datetime(ts.year, ts.month, ts.day, tzinfo=cls.TZ))

        if isinstance(ts, str):
            s = ts.strip()
            fmts = [
                "%Y-%m-%d %H:%M:%S.%f",
                "%Y-%m-%d %H:%M:%S",
                "%Y-%m-%dT%H:%M:%S.%f",
                "%Y-%m-%dT%H:%M:%S",
                "%Y-%m-%d",
                "%Y%m%d",
            ]
            for fmt in fmts:
                try:
                    return cls.to_ms(datetime.strptime(s, fmt))
                except ValueError:
                    pass

            raise ValueError(f"无法解析时间字符串: {ts}")

        raise TypeError(f"不支持的时间类型: {type(ts)}")

    @classmethod
    def to_datetime(cls, ts_ms: int) -> datetime:
        return datetime.fromtimestamp(ts_ms / MS_PER_SECOND, cls.TZ)

    @classmethod
    def format(cls, ts_ms: int) -> str:
        return cls.to_datetime(ts_ms).strftime("%Y-%m-%d %H:%M:%S")

    @classmethod
    def date_str(cls, ts_ms: int) -> str:
        return cls.to_datetime(ts_ms).strftime("%Y-%m-%d")

    # ---------------------------------------------------------------
    # 时间片对齐
    # ---------------------------------------------------------------
    @staticmethod
    def align_time(ts_ms: int, interval_ms: int) -> int:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        return ts_ms - ts_ms % interval_ms

    @classmethod
    def iter_days(cls, t0_ms: int, t1_ms: int) -> Iterator[date]:
        """[t0, t1] 覆盖的所有 UTC 日期（含首尾）"""
        d = cls.to_datetime(t0_ms).date()
        last = cls.to_datetime(t1_ms).date()
        while d <= last:
            yield d
            d += timedelta(days=1)

    @staticmethod
    def duration_str(ms: int) -> str:
        seconds = max(int(ms // MS_PER_SECOND), 0)
        days, rem = divmod(seconds, 86_400)
        hours, rem = divmod(rem, 3_600)
        minutes, seconds = divmod(rem, 60)
        if days:
            return f"{days}d{hours}h{minutes}m{seconds}s"
        if hours:
            return f"{hours}h{minutes}m{seconds}s"
        if minutes:
            return f"{minutes}m{seconds}s"
        return f"{seconds}s"
