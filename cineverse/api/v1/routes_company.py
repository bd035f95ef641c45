from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from cineverse.core.auth import Actor, Role, require_roles
from cineverse.crud.company import crud_company
from cineverse.db.session import getDB_session
from cineverse.redis import get_redis
from cineverse.schemas.company import CompanyCreate, CompanyResponse, CompanyUpdate

router = APIRouter(prefix="/company")


@router.get("/", response_model=list[CompanyResponse])
async def list_companies(db: AsyncSession = Depends(getDB_session)):
    return await crud_company.list_companies(db)


@router.get("/owner/{user_id}", response_model=list[CompanyResponse])
async def list_companies_by_owner(
        user_id: str,
        db: AsyncSession = Depends(getDB_session),
        redis: Redis = Depends(get_redis)):
    return await crud_company.list_companies_by_owner(db, redis, user_id)


@router.get("/{company_id}", response_model=CompanyResponse)
async def get_company(company_id: str, db: AsyncSession = Depends(getDB_session)):
    return await crud_company.get_company_by_id(db, company_id)


@router.post("/", response_model=CompanyResponse, status_code=201)
async def create_company(
        company: CompanyCreate,
        actor: Actor = Depends(require_roles(Role.VENDOR, Role.ADMIN)),
        db: AsyncSession = Depends(getDB_session)):
    return await crud_company.create_company(db, actor, company)


@router.put("/{company_id}", response_model=CompanyResponse)
async def update_company(
        company_id: str,
        company: CompanyUpdate,
        actor: Actor = Depends(require_roles(Role.VENDOR, Role.ADMIN)),
        db: AsyncSession = Depends(getDB_session)):
    return await crud_company.update_company(db, actor, company_id, company)


@router.delete("/{company_id}", status_code=204)
async def delete_company(
        company_id: str,
        actor: Actor = Depends(require_roles(Role.VENDOR, Role.ADMIN)),
        db: AsyncSession = Depends(getDB_session)):
    await crud_company.delete_company(db, actor, company_id)
