"""
Contacts controller
"""

from fastapi import APIRouter, Depends
from typing import List

from schemas.contact import ContactCreate, ContactResponse, ContactUpdate
from services.contact_service import ContactService, get_contact_service

router = APIRouter()


@router.get("", response_model=List[ContactResponse])
async def list_contacts(service: ContactService = Depends(get_contact_service)):
    return await service.list_contacts()


@router.post("", response_model=ContactResponse, status_code=201)
async def create_contact(
    contact_data: ContactCreate,
    service: ContactService = Depends(get_contact_service),
):
    """
    Save a payment receiver; addresses are unique regardless of case
    """
    return await service.create_contact(contact_data)


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: str,
    service: ContactService = Depends(get_contact_service),
):
    return await service.get_contact(contact_id)


@router.put("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: str,
    contact_data: ContactUpdate,
    service: ContactService = Depends(get_contact_service),
):
    return await service.update_contact(contact_id, contact_data)


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: str,
    service: ContactService = Depends(get_contact_service),
):
    await service.delete_contact(contact_id)
    return {"success": True}
