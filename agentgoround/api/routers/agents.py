"""
Agent management API endpoints

CRUD operations for agent (backend) configurations plus endpoint probing
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from agentgoround.providers.registry import get_adapter
from agentgoround.providers.types import AgentConfig, DetectResult

from ..services.agent_config_service import AgentConfigService

router = APIRouter(prefix="/api/agents", tags=["agents"])


def get_agent_config_service() -> AgentConfigService:
    """Dependency injection: get agent configuration service instance"""
    return AgentConfigService()


@router.get("", response_model=List[AgentConfig])
async def list_agents(service: AgentConfigService = Depends(get_agent_config_service)):
    """Get all agents"""
    return await service.get_agents()


@router.get("/{agent_id}", response_model=AgentConfig)
async def get_agent(agent_id: str, service: AgentConfigService = Depends(get_agent_config_service)):
    agent = await service.get_agent(agent_id)
    if not agent:
        raise HTTPException(status_code=404, detail=f"Agent '{agent_id}' not found")
    return agent


@router.put("/{agent_id}", response_model=AgentConfig)
async def upsert_agent(
    agent_id: str,
    agent: AgentConfig,
    service: AgentConfigService = Depends(get_agent_config_service),
):
    """
    Create or replace an agent

    The path id wins over any id in the body.
    """
    try:
        return await service.upsert_agent(agent.model_copy(update={"id": agent_id}))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{agent_id}")
async def delete_agent(agent_id: str, service: AgentConfigService = Depends(get_agent_config_service)):
    """Delete agent (unknown ids are a no-op)"""
    deleted = await service.delete_agent(agent_id)
    return {"deleted": deleted}


@router.post("/{agent_id}/detect", response_model=DetectResult)
async def detect_agent(agent_id: str, service: AgentConfigService = Depends(get_agent_config_service)):
    """Check the agent endpoint with its adapter"""
    agent = await service.get_agent(agent_id)
    if not agent:
        raise HTTPException(status_code=404, detail=f"Agent '{agent_id}' not found")
    return await get_adapter(agent).detect(agent)
