#!/usr/bin/env python3
"""Fault Tolerance Example.

이 예제는 FaultGuard의 재시도, 서킷 브레이커, 타임아웃 조합 사용법을 보여줍니다.

실행:
    python examples/01_fault_tolerance.py
"""

import asyncio

from faultguard import (
    CircuitBreaker,
    CircuitOpenError,
    FaultTolerance,
    OperationTimeoutError,
    RetryExhaustedError,
    RetryPolicy,
    configure_logging,
    exponential,
)


class UnstableAPI:
    """처음 몇 번은 실패하는 외부 API 시뮬레이션."""

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0

    async def fetch(self, query: str) -> str:
        self.calls += 1
        await asyncio.sleep(0.01)
        if self.calls <= self.failures:
            raise ConnectionError(f"연결 실패 #{self.calls}")
        return f"'{query}' 결과"


async def demo_retry() -> None:
    """재시도 데모."""
    print("=" * 60)
    print("1. Retry Demo")
    print("=" * 60)

    api = UnstableAPI(failures=2)
    ft = FaultTolerance(
        retry_policy=RetryPolicy(
            max_attempts=3,
            backoff=exponential(0.1, 2.0),
            retry_on=(ConnectionError,),
        ),
    )

    result = await ft.execute(api.fetch, "weather")
    print(f"\n결과: {result} (호출 {api.calls}회)")


async def demo_circuit_breaker() -> None:
    """서킷 브레이커 데모."""
    print("\n" + "=" * 60)
    print("2. Circuit Breaker Demo")
    print("=" * 60)

    # 재시도 전체가 브레이커 입장에서는 한 번의 호출로 집계됨
    breaker = CircuitBreaker(failure_threshold=2, half_open_after=0.5, name="weather-api")
    ft = FaultTolerance(
        retry_policy=RetryPolicy(max_attempts=2, backoff=exponential(0.05, 2.0)),
        circuit_breaker=breaker,
    )
    api = UnstableAPI(failures=100)

    for i in range(4):
        try:
            await ft.execute(api.fetch, "news")
        except RetryExhaustedError as e:
            print(f"  호출 {i + 1}: 재시도 소진 ({e.attempts}회)")
        except CircuitOpenError as e:
            print(f"  호출 {i + 1}: 차단됨 (retry_after={e.retry_after:.2f}s)")

    print(f"\n브레이커 상태: {breaker.state.value}")

    await asyncio.sleep(0.6)
    api.failures = 0
    result = await ft.execute(api.fetch, "news")
    print(f"복구 후 결과: {result}, 상태: {breaker.state.value}")


async def demo_timeout() -> None:
    """타임아웃 데모."""
    print("\n" + "=" * 60)
    print("3. Operation Timeout Demo")
    print("=" * 60)

    async def slow_query() -> str:
        await asyncio.sleep(10)
        return "너무 늦음"

    ft = FaultTolerance(operation_timeout=0.2)
    try:
        await ft.execute(slow_query)
    except OperationTimeoutError as e:
        print(f"\n타임아웃: {e}")


async def main() -> None:
    configure_logging(level="debug", show_timestamps=False)

    await demo_retry()
    await demo_circuit_breaker()
    await demo_timeout()


if __name__ == "__main__":
    asyncio.run(main())
