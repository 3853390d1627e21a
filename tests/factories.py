"""
Shared test data: a complete biodata form and account helpers.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, Tuple

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.users.models import Role
from app.modules.users.schemas import RegisterRequest
from app.modules.users.service import UsersService

PASSWORD = "secret123"

VALID_FORM: Dict[str, Any] = {
    # Family Background
    "fatherAlive": "Yes",
    "fatherOccupation": "Retired school teacher",
    "motherAlive": "No",
    "brothersCount": "1",
    "sistersCount": 0,
    "brother1Occupation": "Doctor",
    "familyEconomicCondition": "Middle",
    # Education & Profession
    "educationMedium": "Bengali",
    "hscPassingYear": "2015",
    "hscGroup": "Science",
    "hscResult": "GPA 5.00",
    "profession": "Engineer",
    "professionDescription": "Software engineer at a local firm",
    "monthlyIncome": "40,000 - 60,000 BDT",
    # Lifestyle, Health & Compatibility
    "gender": "Male",
    "religion": "Muslim",
    "age": "28",
    "height": "5'8\"",
    "weight": "70 kg",
    "skinTone": "Medium",
    "maritalStatus": "Never Married",
    "presentAddressDivision": "Dhaka",
    "presentAddressDistrict": "Dhaka",
    "permanentAddressDivision": "Chattogram",
    "permanentAddressDistrict": "Cumilla",
    "religiousPractices": "Prays regularly",
    "practiceFrequency": "Daily",
    "mentalPhysicalIllness": "None",
    "hobbiesLikesDislikesDreams": "Reading, travelling, building furniture",
    # Expected Life Partner & Declaration
    "partnerAgePreference": "22-27",
    "partnerSkinTone": "Any",
    "partnerHeight": "5'0\" - 5'6\"",
    "partnerEducation": "Graduate",
    "partnerDistrictRegion": "Any",
    "partnerMaritalStatus": "Single",
    "partnerProfession": "Any",
    "partnerEconomicCondition": "Any",
    "guardianKnowledge": "Yes",
    "informationTruthfulness": "Yes",
    "falseInformationAgreement": "Yes",
    "contactInformation": "Father: 01711-000000",
    "personalContactInfo": "01811-000000",
}


def valid_form(**overrides: Any) -> Dict[str, Any]:
    form = copy.deepcopy(VALID_FORM)
    form.update(overrides)
    return form


def body(response) -> Any:
    """Unwrap the {"success": true, "data": ...} envelope."""
    payload = response.json()
    assert payload["success"] is True, payload
    return payload["data"]


async def register(client: AsyncClient, username: str) -> Tuple[int, Dict[str, str]]:
    response = await client.post(
        "/api/users/register",
        json={"username": username, "password": PASSWORD, "name": username.title()},
    )
    assert response.status_code == 201, response.text
    data = body(response)
    return data["user"]["id"], {"Authorization": f"Bearer {data['token']['access_token']}"}


async def make_user(
    db: AsyncSession, username: str, role: Role = Role.USER
) -> Tuple[int, str]:
    """Create and commit an account directly: (user_id, access token)."""
    result = await UsersService.create(
        db,
        RegisterRequest(username=username, password=PASSWORD, name=username.title()),
        role=role,
    )
    await db.commit()
    return result.user.id, result.token.access_token


async def submit(client: AsyncClient, headers: Dict[str, str], **overrides: Any) -> Dict[str, Any]:
    """Submit a complete biodata and return the owner view of it."""
    response = await client.post("/api/profiles", json=valid_form(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return body(response)["profile"]
