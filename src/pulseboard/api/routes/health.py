"""Service health and listing endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

router = APIRouter(tags=["services"])


@router.get("/services")
async def list_services(request: Request) -> list[dict[str, Any]]:
    source = request.app.state.instances
    aggregator = request.app.state.aggregator
    instances = await source.list_instances()
    results = await aggregator.check_all(instances)
    return [
        {
            "name": instance.display_name,
            "type": instance.service_type,
            "url": instance.url,
            **result.to_dict(),
        }
        for instance, result in zip(instances, results)
    ]


@router.get("/services/{instance_id}/health")
async def service_health(request: Request, instance_id: str) -> dict[str, Any]:
    instance = request.app.state.instances.get(instance_id)
    if instance is None:
        raise HTTPException(status_code=404, detail=f"Unknown service: {instance_id}")
    result = await request.app.state.aggregator.check_instance(instance)
    return result.to_dict()


@router.get("/service-types")
async def service_types(request: Request) -> list[str]:
    return sorted(request.app.state.aggregator.known_product_types())
