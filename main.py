from dataclasses import dataclass
from time import sleep, perf_counter

from lazyseq import collectors, from_container, from_generator, iterate
from lazyseq.config import EvaluationSettings
from lazyseq.utils import setup_logging


@dataclass
class User:
    name: str
    age: int
    email: str


def expensive_transform(x):
    # Simulate a costly step so laziness is visible
    print(f"  computing f({x}) ...")
    sleep(0.2)
    return x * x


def is_prime(n):
    return n > 1 and all(n % d for d in range(2, int(n ** 0.5) + 1))


def send_mail(user):
    print(f"  mail -> {user.email}")


setup_logging(EvaluationSettings(log_level="WARNING"))

print("\n--- Demo: laziness (no work until a terminal runs) ---")
pipeline = (
    from_container(range(1, 10_000))
    .transform(expensive_transform)
    .filter(lambda v: v % 2 == 0)
    .skip(3)
    .limit(5)
)
print("Constructed pipeline. No output yet (nothing computed).")
t0 = perf_counter()
out = pipeline.to_list()
print(f"Result: {out}")
print(f"Time: {perf_counter() - t0:.2f}s\n")

print("--- Demo: short-circuiting an infinite source ---")
counter = iterate(1, lambda n: n + 1)
print("First five primes:", counter.filter(is_prime).limit(5).to_list())

print("\n--- Demo: filter -> transform -> act over user records ---")
users = [
    User("ana", 34, "ana@example.com"),
    User("bo", 17, "bo@example.com"),
    User("cy", 52, "cy@example.com"),
    User("di", 15, "di@example.com"),
]
from_container(users).filter(lambda u: u.age >= 18).for_each(send_mail)

print("Average adult age:", from_container(users).filter(lambda u: u.age >= 18).average(lambda u: u.age).or_else("n/a"))
print("Names:", from_container(users).transform(lambda u: u.name).collect(collectors.joining(", ")))
print("By bracket:", from_container(users).collect(
    collectors.grouping_by(lambda u: "adult" if u.age >= 18 else "minor", collectors.counting())
))

print("\n--- Demo: single consumption ---")
once = from_generator(lambda: "tick").limit(2)
print("First run:", once.to_list())
try:
    once.to_list()
except Exception as e:
    print(f"Second run refused: {type(e).__name__}: {e}")
