"""
AWS metrics provider.

Wraps CloudWatch (instance metrics), EC2 (inventory) and Cost Explorer
(billing) behind the MetricsProvider interface.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from .base import MetricsProvider, ProviderError
from .models import ConnectionStatus, CostDataPoint, Instance, MetricDataPoint, PermissionsCheck

logger = structlog.get_logger(__name__)

AWS_ERRORS = (BotoCoreError, ClientError)

# Cost Explorer is only served from us-east-1
COST_EXPLORER_REGION = "us-east-1"
EC2_NAMESPACE = "AWS/EC2"
METRIC_PERIOD_SECONDS = 300
METRIC_STAT = "Average"
MAX_QUERIES_PER_REQUEST = 500
COST_METRIC = "UnblendedCost"


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _parse_date(value: str) -> datetime:
    return datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=UTC)


class AWSProvider(MetricsProvider):
    """MetricsProvider implementation for Amazon Web Services"""

    def __init__(self, region: str, profile_name: str | None = None):
        self.region = region
        self.profile_name = profile_name

        try:
            session = boto3.session.Session(profile_name=profile_name, region_name=region)
            self.cloudwatch = session.client("cloudwatch")
            self.ec2 = session.client("ec2")
            self.costexplorer = session.client("ce", region_name=COST_EXPLORER_REGION)
            logger.info("AWS clients initialized", region=region, profile=profile_name)
        except AWS_ERRORS as e:
            logger.error("Failed to initialize AWS clients", region=region, error=str(e))
            raise ProviderError(f"Failed to initialize AWS clients: {e}") from e

    @property
    def name(self) -> str:
        return "aws"

    # ========================================
    # Connectivity
    # ========================================

    def _probe(self, label: str, call) -> bool:
        try:
            call()
            return True
        except AWS_ERRORS as e:
            logger.warning("AWS permission probe failed", probe=label, error=str(e))
            return False

    def _probe_cost_explorer(self) -> None:
        end = datetime.now(UTC)
        start = end - timedelta(days=1)
        self.costexplorer.get_cost_and_usage(
            TimePeriod={"Start": start.strftime("%Y-%m-%d"), "End": end.strftime("%Y-%m-%d")},
            Granularity="DAILY",
            Metrics=[COST_METRIC],
        )

    def verify_connection(self) -> ConnectionStatus:
        permissions = PermissionsCheck(
            metrics_monitor_read=self._probe("cloudwatch", self.cloudwatch.list_metrics),
            instance_describe=self._probe(
                "ec2", lambda: self.ec2.describe_instances(MaxResults=10)
            ),
            cost_explorer_read=self._probe("cost_explorer", self._probe_cost_explorer),
        )

        status = ConnectionStatus(
            connected=permissions.metrics_monitor_read or permissions.instance_describe,
            region=self.region,
            permissions=permissions,
        )
        logger.info(
            "AWS connection verified",
            connected=status.connected,
            region=self.region,
            cloudwatch=permissions.metrics_monitor_read,
            ec2=permissions.instance_describe,
            cost_explorer=permissions.cost_explorer_read,
        )
        return status

    # ========================================
    # Inventory
    # ========================================

    def discover_instances(
        self, tag_filters: list[tuple[str, str]] | None = None
    ) -> list[Instance]:
        filters = [{"Name": f"tag:{key}", "Values": [value]} for key, value in tag_filters or []]

        instances: list[Instance] = []
        try:
            paginator = self.ec2.get_paginator("describe_instances")
            pages = paginator.paginate(Filters=filters) if filters else paginator.paginate()
            for page in pages:
                for reservation in page.get("Reservations", []):
                    for raw in reservation.get("Instances", []):
                        instances.append(self._parse_instance(raw))
        except AWS_ERRORS as e:
            logger.error("Failed to describe EC2 instances", error=str(e))
            raise ProviderError(f"Failed to describe EC2 instances: {e}") from e

        logger.debug("Discovered instances", count=len(instances), filters=len(filters))
        return instances

    @staticmethod
    def _parse_instance(raw: dict[str, Any]) -> Instance:
        instance_id = raw.get("InstanceId")
        if not instance_id:
            raise ProviderError("Instance missing ID")
        instance_type = raw.get("InstanceType")
        if not instance_type:
            raise ProviderError(f"Instance type missing for {instance_id}")

        tags = [
            (tag["Key"], tag["Value"])
            for tag in raw.get("Tags", [])
            if tag.get("Key") is not None and tag.get("Value") is not None
        ]
        name = next((value for key, value in tags if key == "Name"), None)

        return Instance(
            instance_id=instance_id,
            instance_type=instance_type,
            state=(raw.get("State") or {}).get("Name") or "unknown",
            name=name,
            tags=tags,
        )

    # ========================================
    # Monitoring
    # ========================================

    def fetch_instance_metrics(
        self,
        instance_ids: list[str],
        metric_names: list[str],
        start_time: datetime,
        end_time: datetime,
    ) -> list[MetricDataPoint]:
        targets = (
            list(instance_ids)
            if instance_ids
            else [instance.instance_id for instance in self.discover_instances()]
        )
        if not targets or not metric_names:
            return []

        queries = []
        lookup: dict[str, tuple[str, str]] = {}
        for instance_id in targets:
            for metric_name in metric_names:
                query_id = f"m{len(queries)}"
                lookup[query_id] = (instance_id, metric_name)
                queries.append(
                    {
                        "Id": query_id,
                        "MetricStat": {
                            "Metric": {
                                "Namespace": EC2_NAMESPACE,
                                "MetricName": metric_name,
                                "Dimensions": [{"Name": "InstanceId", "Value": instance_id}],
                            },
                            "Period": METRIC_PERIOD_SECONDS,
                            "Stat": METRIC_STAT,
                        },
                        "ReturnData": True,
                    }
                )

        results: list[MetricDataPoint] = []
        paginator = self.cloudwatch.get_paginator("get_metric_data")
        for offset in range(0, len(queries), MAX_QUERIES_PER_REQUEST):
            chunk = queries[offset : offset + MAX_QUERIES_PER_REQUEST]
            try:
                for page in paginator.paginate(
                    MetricDataQueries=chunk, StartTime=start_time, EndTime=end_time
                ):
                    for result in page.get("MetricDataResults", []):
                        target = lookup.get(result.get("Id", ""))
                        if target is None:
                            continue
                        instance_id, metric_name = target
                        for timestamp, value in zip(
                            result.get("Timestamps", []), result.get("Values", []), strict=False
                        ):
                            results.append(
                                MetricDataPoint(
                                    metric_name=metric_name,
                                    resource_id=instance_id,
                                    value=float(value),
                                    unit=None,
                                    timestamp=_to_utc(timestamp),
                                    provider=self.name,
                                )
                            )
            except AWS_ERRORS as e:
                logger.error("Failed to fetch CloudWatch metrics", queries=len(chunk), error=str(e))
                raise ProviderError(f"Failed to fetch CloudWatch metrics: {e}") from e

        logger.debug(
            "Fetched instance metrics",
            instances=len(targets),
            metrics=len(metric_names),
            points=len(results),
        )
        return results

    # ========================================
    # Billing
    # ========================================

    def fetch_cost_data(
        self, start_date: datetime, end_date: datetime, granularity: str = "DAILY"
    ) -> list[CostDataPoint]:
        request: dict[str, Any] = {
            "TimePeriod": {
                "Start": start_date.strftime("%Y-%m-%d"),
                "End": end_date.strftime("%Y-%m-%d"),
            },
            "Granularity": granularity,
            "Metrics": [COST_METRIC],
            "GroupBy": [{"Type": "DIMENSION", "Key": "SERVICE"}],
        }

        results: list[CostDataPoint] = []
        try:
            while True:
                response = self.costexplorer.get_cost_and_usage(**request)
                for by_time in response.get("ResultsByTime", []):
                    results.extend(self._parse_cost_period(by_time))

                token = response.get("NextPageToken")
                if not token:
                    break
                request["NextPageToken"] = token
        except AWS_ERRORS as e:
            logger.error("Failed to fetch cost data", error=str(e))
            raise ProviderError(f"Failed to fetch cost data: {e}") from e

        logger.debug("Fetched cost data", points=len(results), granularity=granularity)
        return results

    def _parse_cost_period(self, by_time: dict[str, Any]) -> list[CostDataPoint]:
        period = by_time.get("TimePeriod") or {}
        if not period.get("Start") or not period.get("End"):
            return []

        try:
            period_start = _parse_date(period["Start"])
            period_end = _parse_date(period["End"])
        except ValueError as e:
            raise ProviderError(f"Invalid cost period {period}: {e}") from e

        points = []
        for group in by_time.get("Groups", []):
            metric = (group.get("Metrics") or {}).get(COST_METRIC)
            if metric is None:
                continue

            keys = group.get("Keys") or []
            try:
                amount = float(metric.get("Amount", 0.0))
            except (TypeError, ValueError):
                amount = 0.0

            points.append(
                CostDataPoint(
                    service=keys[0] if keys else None,
                    amount=amount,
                    unit=metric.get("Unit") or "USD",
                    period_start=period_start,
                    period_end=period_end,
                    provider=self.name,
                )
            )
        return points
