"""
平手抽籤用的亂數來源

只有在多個提案同為最高票時，計票才需要一個整數來決定勝出者；
來源是注入的，部署時可以把預設的弱亂數換掉。

警告：預設的 TimestampRandomness 由時鐘與公開的選舉資料推得，
能決定計票「何時」執行、或能觀察這些輸入的人都可以預測結果。
抽籤結果重要時請改用 SystemRandomness，或可驗證的來源（VRF / commit-reveal）。
"""
import hashlib
import secrets
import time
from typing import Optional, Protocol


class RandomnessProvider(Protocol):
    def random_value(self) -> int:
        ...


class TimestampRandomness:
    """sha256(time_ns:context)，可預測"""

    def __init__(self, context: str = "", clock=time.time_ns):
        self.context = context
        self._clock = clock

    def random_value(self) -> int:
        seed = f"{self._clock()}:{self.context}".encode()
        return int.from_bytes(hashlib.sha256(seed).digest(), "big")


class SystemRandomness:
    """作業系統的 CSPRNG，無法預測但也無法公開驗證"""

    def random_value(self) -> int:
        return secrets.randbits(256)


class FixedRandomness:
    """固定回傳同一個值，重播已稽核過的抽籤時使用"""

    def __init__(self, value: int):
        self.value = value

    def random_value(self) -> int:
        return self.value


PROVIDERS = {
    "timestamp": TimestampRandomness,
    "system": SystemRandomness,
}


def get_randomness_provider(name: str, context: Optional[str] = None) -> RandomnessProvider:
    """
    依 tiebreak_source 設定建立亂數來源

    參數：
        name: "timestamp" 或 "system"
        context: 混進 timestamp 種子的字串（通常是 election id）

    返回：
        RandomnessProvider

    異常：
        ValueError: 未知的來源名稱
    """
    if name not in PROVIDERS:
        raise ValueError(
            f"Unknown tiebreak source {name!r}, expected one of {sorted(PROVIDERS)}"
        )
    if name == "timestamp":
        return TimestampRandomness(context or "")
    return PROVIDERS[name]()
