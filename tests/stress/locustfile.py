"""
OmniStock Load Testing with Locust

Seed the demo tenant first (python -m flask system seed-demo), then run:
    locust -f tests/stress/locustfile.py --host http://127.0.0.1:5000

Or headless:
    locust -f tests/stress/locustfile.py --host http://127.0.0.1:5000 \
           --users 10 --spawn-rate 2 --run-time 60s --headless

Pass thresholds:
- p95 response time < 500ms for reads
- p95 response time < 1000ms for writes
- Error rate < 1%
"""

import os
import random
import time
from typing import Dict, List, Optional

from locust import HttpUser, between, events, task

DEMO_PASSWORD = os.environ.get("OMNISTOCK_DEMO_PASSWORD", "Password123!")
ADMIN_EMAIL = "admin@omnistock.com"
SELLER_EMAIL = "vendedor@omnistock.com"

WRITE_ENDPOINTS = ("sales/register", "products/stock")


class MetricsCollector:
    """Response times and error counts per endpoint name."""

    def __init__(self):
        self.response_times: Dict[str, List[float]] = {}
        self.error_counts: Dict[str, int] = {}

    def record(self, name: str, response_time: float, success: bool):
        self.response_times.setdefault(name, []).append(response_time)
        self.error_counts.setdefault(name, 0)
        if not success:
            self.error_counts[name] += 1

    def get_summary(self) -> Dict:
        summary = {}
        for name, times in self.response_times.items():
            times = sorted(times)
            count = len(times)
            summary[name] = {
                "count": count,
                "errors": self.error_counts[name],
                "error_rate": self.error_counts[name] / count * 100,
                "avg_ms": sum(times) / count,
                "p95_ms": times[min(int(count * 0.95), count - 1)],
            }
        return summary


metrics = MetricsCollector()


class OmniStockUser(HttpUser):
    """Logs in on start and keeps the bearer token."""
    wait_time = between(0.5, 2)
    abstract = True
    email: str = ADMIN_EMAIL

    token: Optional[str] = None
    product_ids: List[int] = []

    def on_start(self):
        response = self.client.post(
            "/api/auth/login",
            json={"email": self.email, "password": DEMO_PASSWORD},
            name="auth/login",
        )
        if response.status_code == 200:
            self.token = response.json().get("token")
            self.refresh_products()

    def headers(self) -> Dict:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def timed(self, method: str, path: str, name: str, ok=(200,), **kwargs):
        start = time.time()
        response = self.client.request(method, path, headers=self.headers(), name=name, **kwargs)
        metrics.record(name, (time.time() - start) * 1000, response.status_code in ok)
        return response

    def refresh_products(self):
        response = self.timed("GET", "/api/products", "products/list")
        if response.status_code == 200:
            self.product_ids = [p["id"] for p in response.json().get("items", [])]


class SellerUser(OmniStockUser):
    """EMPLOYEE browsing the catalog and registering sales."""
    weight = 3
    email = SELLER_EMAIL

    @task(5)
    def list_products(self):
        self.refresh_products()

    @task(2)
    def search_low_stock(self):
        self.timed("GET", "/api/products", "products/search", params={"stock": "low", "q": "a"})

    @task(2)
    def register_sale(self):
        if not self.product_ids:
            return
        # 400 is expected once stock runs out
        self.timed(
            "POST", "/api/sales", "sales/register", ok=(201, 400),
            json={"product_id": random.choice(self.product_ids), "quantity": 1},
        )

    @task(1)
    def sales_history(self):
        self.timed("GET", "/api/sales", "sales/list", params={"limit": 50})


class AdminUser(OmniStockUser):
    """ADMIN watching the dashboard and restocking."""
    weight = 1
    email = ADMIN_EMAIL

    @task(4)
    def dashboard(self):
        self.timed("GET", "/api/dashboard", "dashboard")

    @task(2)
    def restock(self):
        if not self.product_ids:
            return
        self.timed(
            "POST", f"/api/products/{random.choice(self.product_ids)}/stock", "products/stock",
            json={"delta": random.randint(1, 5)},
        )

    @task(1)
    def health_check(self):
        self.timed("GET", "/health", "system/health")


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Print summary when test stops."""
    print("\n" + "=" * 80)
    print("LOAD TEST SUMMARY")
    print("=" * 80)
    print(f"\n{'Endpoint':<30} {'Count':>8} {'Errors':>8} {'Err%':>8} {'Avg(ms)':>10} {'P95(ms)':>10}")
    print("-" * 80)

    all_pass = True
    for name, stats in sorted(metrics.get_summary().items()):
        p95_threshold = 1000 if name in WRITE_ENDPOINTS else 500
        passed = stats["p95_ms"] < p95_threshold and stats["error_rate"] < 1
        all_pass = all_pass and passed
        print(
            f"{name:<30} {stats['count']:>8} {stats['errors']:>8} {stats['error_rate']:>7.2f}% "
            f"{stats['avg_ms']:>9.1f} {stats['p95_ms']:>9.1f} [{'PASS' if passed else 'FAIL'}]"
        )

    print("=" * 80)
    print("\n[PASS] All endpoints within thresholds" if all_pass else "\n[FAIL] Some endpoints exceeded thresholds")
