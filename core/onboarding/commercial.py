"""
Commercial Flow - Sections, Rules and Payloads for Commercial Listings

Commercial assets have stricter thresholds than residential ones:
- at least 3,000 sqft and an estimated value of at least $1.5M
- at least 5 photos (virtual tour optional)
- fourteen mandatory documents, PDF/JPG/PNG up to 50MB each
"""

from __future__ import annotations

from typing import Any, Final

from core.onboarding.flows import PropertyFlow, export_section_data, register_flow
from core.onboarding.schema import (
    DETAILS_SECTION,
    PropertyDraft,
    PropertyKind,
    UploadKind,
    cover_image,
)
from core.onboarding.validation import (
    FieldError,
    check_address,
    check_choice,
    check_consents,
    check_document,
    check_market,
    check_minimum,
    check_other_market,
    check_photos,
    check_pincode,
    check_range,
    check_selection,
    check_text_length,
    check_title,
    check_video,
    check_year_built,
    collect,
    document_label,
    parse_int,
    parse_number,
)


# =============================================================================
# Constants
# =============================================================================

APPROVED_MARKETS: Final[tuple[str, ...]] = (
    "Miami Beach, FL",
    "Palm Springs, CA",
    "Aspen, CO",
    "Beverly Hills, CA",
    "Manhattan, NY",
    "Las Vegas, NV",
    "Scottsdale, AZ",
    "Lake Tahoe, CA",
    "Vail, CO",
    "Newport Beach, CA",
    "Other",
)

ZONING_TYPES: Final[tuple[str, ...]] = ("Retail", "Office", "Mixed-Use", "Industrial", "Hospitality")
BOOKING_DURATIONS: Final[tuple[str, ...]] = ("Hourly", "Daily", "Weekly")
ACCESS_TYPES: Final[tuple[str, ...]] = ("Keycard", "QR Scan", "Manual Entry")
LISTING_TYPES: Final[tuple[str, ...]] = ("rental-only", "fractional-ownership-rental")

MIN_SQUARE_FOOTAGE: Final[int] = 3000
MIN_PROPERTY_VALUE: Final[int] = 1_500_000
MIN_PHOTOS: Final[int] = 5

MANDATORY_DOCUMENTS: Final[tuple[str, ...]] = (
    "property_deed",
    "zoning_certificate",
    "title_report",
    "government_id",
    "certificate_of_occupancy",
    "rent_roll",
    "income_expense_statements",
    "cam_agreement",
    "environmental_report",
    "property_condition_assessment",
    "proof_of_insurance",
    "utility_bill",
    "property_appraisal",
    "authorization_to_tokenize",
)

# Validated when provided, never required
CONDITIONAL_DOCUMENTS: Final[tuple[str, ...]] = (
    "mortgage_statement",
    "hoa_documents",
    "franchise_agreement",
    "business_licenses",
    "ada_compliance_report",
    "fire_safety_inspection",
)

DOCUMENT_MAX_SIZE_MB: Final[int] = 50
DOCUMENT_TYPES: Final[tuple[str, ...]] = (
    "application/pdf",
    "image/jpeg",
    "image/jpg",
    "image/png",
)

LEGAL_CONSENTS: Final[tuple[str, ...]] = (
    "investment_risks",
    "platform_terms",
    "variable_income",
    "tokenization_consent",
    "usage_rights",
    "liquidity_limitations",
    "governance_rights",
)

PLACEHOLDER_IMAGE: Final[str] = "placeholder://commercial"

DEFAULT_SECTIONS: Final[dict[str, dict[str, Any]]] = {
    "property_details": {
        "property_title": "",
        "market": "",
        "other_market": "",
        "pincode": "",
        "full_address": "",
        "zoning_type": "",
        "square_footage": "",
        "year_built": "",
    },
    "financial_details": {
        "estimated_property_value": "",
        "base_rental_rate": "",
        "cleaning_maintenance_fee": "",
        "weeks_available_per_year": "",
        "minimum_booking_duration": "",
    },
    "features_compliance": {
        "building_amenities": [],
        "smart_building_systems": "",
        "business_services_provided": "",
        "access_type": "",
        "property_highlights": "",
    },
    "media_uploads": {
        "photos": [],
        "virtual_tour": "",
    },
    "documents": {name: None for name in MANDATORY_DOCUMENTS + CONDITIONAL_DOCUMENTS},
    "legal_consents": {name: False for name in LEGAL_CONSENTS},
    "listing_type": {"selected_type": None},
}


# =============================================================================
# Section Validators
# =============================================================================


def validate_property_details(data: dict[str, Any], current_year: int) -> dict[str, FieldError]:
    return collect(
        property_title=check_title(data.get("property_title")),
        market=check_market(data.get("market"), APPROVED_MARKETS),
        other_market=check_other_market(data.get("market"), data.get("other_market")),
        pincode=check_pincode(data.get("pincode")),
        full_address=check_address(data.get("full_address")),
        zoning_type=check_choice(data.get("zoning_type"), ZONING_TYPES, "Zoning type is required"),
        square_footage=check_minimum(
            data.get("square_footage"), MIN_SQUARE_FOOTAGE,
            "Square footage is required", "Commercial property must be at least 3,000 sqft",
        ),
        year_built=check_year_built(data.get("year_built"), current_year),
    )


def validate_financial_details(data: dict[str, Any], current_year: int) -> dict[str, FieldError]:
    return collect(
        estimated_property_value=check_minimum(
            data.get("estimated_property_value"), MIN_PROPERTY_VALUE,
            "Estimated property value is required",
            "Estimated property value must be at least $1.5M",
        ),
        base_rental_rate=check_minimum(
            data.get("base_rental_rate"), 10,
            "Base rental rate is required", "Base rental rate must be greater than $10",
            strict=True,
        ),
        cleaning_maintenance_fee=check_minimum(
            data.get("cleaning_maintenance_fee"), 5,
            "Cleaning or maintenance fee is required",
            "Cleaning or maintenance fee must be greater than $5",
            strict=True,
        ),
        weeks_available_per_year=check_range(
            data.get("weeks_available_per_year"), 20, 52,
            "Weeks available per year is required",
            "Weeks available per year must be between 20 and 52",
        ),
        minimum_booking_duration=check_choice(
            data.get("minimum_booking_duration"), BOOKING_DURATIONS,
            "Minimum booking duration is required",
        ),
    )


def validate_features_compliance(data: dict[str, Any], current_year: int) -> dict[str, FieldError]:
    return collect(
        building_amenities=check_selection(
            data.get("building_amenities"), "Please select at least one building amenity"
        ),
        access_type=check_choice(data.get("access_type"), ACCESS_TYPES, "Access type is required"),
        property_highlights=check_text_length(
            data.get("property_highlights"), "Property highlights"
        ),
    )


def validate_media_uploads(data: dict[str, Any], current_year: int) -> dict[str, FieldError]:
    return collect(
        photos=check_photos(data.get("photos"), MIN_PHOTOS),
        virtual_tour=check_video(data.get("virtual_tour"), required=False),
    )


def validate_documents(data: dict[str, Any], current_year: int) -> dict[str, FieldError]:
    checks = {}
    for name in MANDATORY_DOCUMENTS + CONDITIONAL_DOCUMENTS:
        checks[name] = check_document(
            data.get(name),
            document_label(name),
            DOCUMENT_MAX_SIZE_MB,
            DOCUMENT_TYPES,
            "{label} must be a PDF, JPG, or PNG file",
            required=name in MANDATORY_DOCUMENTS,
        )
    return collect(**checks)


def validate_legal_consents(data: dict[str, Any], current_year: int) -> dict[str, FieldError]:
    return check_consents(data, LEGAL_CONSENTS)


def validate_listing_type(data: dict[str, Any], current_year: int) -> dict[str, FieldError]:
    return collect(
        selected_type=check_choice(
            data.get("selected_type"), LISTING_TYPES, "Please select a listing type"
        ),
    )


SECTION_VALIDATORS: Final = {
    "property_details": validate_property_details,
    "financial_details": validate_financial_details,
    "features_compliance": validate_features_compliance,
    "media_uploads": validate_media_uploads,
    "documents": validate_documents,
    "legal_consents": validate_legal_consents,
    "listing_type": validate_listing_type,
}


# =============================================================================
# Payloads
# =============================================================================


def _market_location(details: dict[str, Any]) -> str:
    market = details.get("market") or ""
    if market == "Other":
        return details.get("other_market") or ""
    return market


def build_create_payload(draft: PropertyDraft) -> dict:
    """Shape the details section for the create-property call."""
    details = draft.section(DETAILS_SECTION)
    city, _, state = _market_location(details).partition(",")
    zoning = details.get("zoning_type") or ""

    return {
        "title": draft.title,
        "description": f"{draft.title} - {zoning} commercial property",
        "category": zoning.lower(),
        "type": PropertyKind.COMMERCIAL.value,
        "location": {
            "address": details.get("full_address", ""),
            "city": city.strip(),
            "state": state.strip(),
            "country": "USA",
            "zipCode": details.get("pincode", ""),
        },
        "squareFootage": parse_number(details.get("square_footage")),
        "yearBuilt": parse_int(details.get("year_built")),
    }


def _financial_payload(data: dict[str, Any]) -> dict:
    return {
        "propertyValueEstimate": {
            "value": parse_number(data.get("estimated_property_value")),
            "currency": "USD",
        },
        "rentAmount": {
            "basePrice": parse_number(data.get("base_rental_rate")),
            "currency": "USD",
        },
        "maintenanceFee": {
            "amount": parse_number(data.get("cleaning_maintenance_fee")),
            "currency": "USD",
        },
        "availableWeeksPerYear": parse_int(data.get("weeks_available_per_year")),
        "minimumBookingDuration": data.get("minimum_booking_duration"),
    }


def build_section_payload(draft: PropertyDraft, section: str) -> dict:
    """Shape one section for the save-draft call."""
    data = draft.section(section)
    payload = {"title": draft.title, "type": PropertyKind.COMMERCIAL.value, "section": section}
    if section == DETAILS_SECTION:
        payload.update(build_create_payload(draft))
    elif section == "financial_details":
        payload.update(_financial_payload(data))
    else:
        payload["data"] = export_section_data(data)
    return payload


def build_registry_fields(draft: PropertyDraft) -> dict:
    details = draft.sections.get(DETAILS_SECTION, {})
    financial = draft.sections.get("financial_details", {})
    photos = draft.sections.get("media_uploads", {}).get("photos")

    return {
        "location": _market_location(details) or details.get("full_address", ""),
        "image": cover_image(photos, PLACEHOLDER_IMAGE),
        "price": parse_number(financial.get("estimated_property_value")),
        "bedrooms": None,
        "bathrooms": None,
        "square_footage": parse_number(details.get("square_footage")),
    }


# =============================================================================
# Flow
# =============================================================================

COMMERCIAL_FLOW: Final[PropertyFlow] = PropertyFlow(
    kind=PropertyKind.COMMERCIAL,
    default_sections=DEFAULT_SECTIONS,
    section_validators=SECTION_VALIDATORS,
    upload_fields={
        "media_uploads": {
            "photos": UploadKind.IMAGES,
            "virtual_tour": UploadKind.VIDEOS,
        },
    },
    document_sections=("documents",),
    create_payload=build_create_payload,
    section_payload=build_section_payload,
    registry_fields=build_registry_fields,
)

register_flow(COMMERCIAL_FLOW)
