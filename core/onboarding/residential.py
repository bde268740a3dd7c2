"""
Residential Flow - Sections, Rules and Payloads for Residential Listings

Sections (wizard order):
1. property_details      title, market, address, layout, size
2. pricing_valuation     value estimate and nightly pricing
3. features_compliance   furnishing, amenities, house rules, highlights
4. media_upload          photos, virtual tour, optional 360 video
5. documents_upload      ownership, identity and compliance PDFs
6. legal_consents        platform consents, all mandatory
7. listing_purpose       rental, fractional ownership, or both

Square footage must allow at least 50 sqft per bedroom.
"""

from __future__ import annotations

from typing import Any, Final, Optional

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
    check_required_text,
    check_selection,
    check_square_footage_per_bedroom,
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
    "Miami, FL",
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

PROPERTY_TYPES: Final[tuple[str, ...]] = ("Apartment", "Condo", "Villa", "Townhouse")

LISTING_PURPOSES: Final[tuple[str, ...]] = ("rental-only", "fractional-ownership-only", "both")

SQFT_PER_BEDROOM: Final[int] = 50
MIN_PHOTOS: Final[int] = 3

MANDATORY_DOCUMENTS: Final[tuple[str, ...]] = (
    "property_deed",
    "government_id",
    "property_tax_bill",
    "proof_of_insurance",
    "utility_bill",
    "appraisal_report",
    "authorization_to_sell",
)

# Document -> flag in the documents section that makes it mandatory
CONDITIONAL_DOCUMENTS: Final[dict[str, str]] = {
    "mortgage_statement": "has_mortgage",
    "hoa_documents": "has_hoa",
}

DOCUMENT_MAX_SIZE_MB: Final[int] = 10
DOCUMENT_TYPES: Final[tuple[str, ...]] = ("application/pdf",)

LEGAL_CONSENTS: Final[tuple[str, ...]] = (
    "investment_risks",
    "platform_terms",
    "variable_income",
    "tokenization_consent",
    "usage_rights",
    "liquidity_limitations",
    "governance_rights",
)

PLACEHOLDER_IMAGE: Final[str] = "placeholder://residential"

DEFAULT_SECTIONS: Final[dict[str, dict[str, Any]]] = {
    "property_details": {
        "property_title": "",
        "market": "",
        "other_market": "",
        "pincode": "",
        "full_address": "",
        "property_type": "",
        "year_built": "",
        "bedrooms": "",
        "bathrooms": "",
        "guest_capacity": "",
        "square_footage": "",
    },
    "pricing_valuation": {
        "estimated_property_value": "",
        "nightly_rate": "",
        "weekend_rate": "",
        "cleaning_fee": "",
        "rental_availability": "",
        "minimum_stay": "",
    },
    "features_compliance": {
        "furnishing_description": "",
        "featured_amenities": [],
        "custom_amenities": [],
        "smart_home_features": False,
        "concierge_services": "",
        "check_in_time": {"hour": 3, "minute": 0, "period": "PM"},
        "check_out_time": {"hour": 11, "minute": 0, "period": "AM"},
        "house_rules": [],
        "local_highlights": "",
    },
    "media_upload": {
        "photos": [],
        "virtual_tour": "",
        "video_360": None,
    },
    "documents_upload": {
        **{name: None for name in MANDATORY_DOCUMENTS},
        **{name: None for name in CONDITIONAL_DOCUMENTS},
        "has_mortgage": False,
        "has_hoa": False,
    },
    "legal_consents": {name: False for name in LEGAL_CONSENTS},
    "listing_purpose": {"selected_purpose": None},
}


# =============================================================================
# Section Validators
# =============================================================================


def _check_square_footage(data: dict[str, Any]) -> Optional[FieldError]:
    error = check_minimum(
        data.get("square_footage"),
        0,
        "Square footage is required",
        "Square footage must be greater than 0",
        strict=True,
    )
    if error:
        return error
    return check_square_footage_per_bedroom(
        data.get("square_footage"), data.get("bedrooms"), SQFT_PER_BEDROOM
    )


def validate_property_details(data: dict[str, Any], current_year: int) -> dict[str, FieldError]:
    return collect(
        property_title=check_title(data.get("property_title")),
        market=check_market(data.get("market"), APPROVED_MARKETS),
        other_market=check_other_market(data.get("market"), data.get("other_market")),
        pincode=check_pincode(data.get("pincode")),
        full_address=check_address(data.get("full_address")),
        property_type=check_choice(
            data.get("property_type"), PROPERTY_TYPES, "Property type is required"
        ),
        year_built=check_year_built(data.get("year_built"), current_year),
        bedrooms=check_range(
            data.get("bedrooms"), 0, 10,
            "Number of bedrooms is required", "Bedrooms must be between 0 and 10",
        ),
        bathrooms=check_range(
            data.get("bathrooms"), 0, 10,
            "Number of bathrooms is required", "Bathrooms must be between 0 and 10",
            whole=False,
        ),
        guest_capacity=check_range(
            data.get("guest_capacity"), 1, 20,
            "Guest capacity is required", "Guest capacity must be between 1 and 20",
        ),
        square_footage=_check_square_footage(data),
    )


def validate_pricing_valuation(data: dict[str, Any], current_year: int) -> dict[str, FieldError]:
    return collect(
        estimated_property_value=check_minimum(
            data.get("estimated_property_value"), 0,
            "Estimated property value is required",
            "Estimated property value must be greater than 0",
            strict=True,
        ),
        nightly_rate=check_minimum(
            data.get("nightly_rate"), 50,
            "Nightly rate is required", "Nightly rate must be at least $50",
        ),
        weekend_rate=check_minimum(
            data.get("weekend_rate"), 50, None, "Weekend rate must be at least $50",
        ),
        cleaning_fee=check_minimum(
            data.get("cleaning_fee"), 50,
            "Cleaning fee is required", "Cleaning fee must be at least $50",
        ),
        rental_availability=check_range(
            data.get("rental_availability"), 0, 52,
            "Rental availability is required",
            "Rental availability must be between 0 and 52 weeks",
        ),
        minimum_stay=check_range(
            data.get("minimum_stay"), 2, 30,
            "Minimum stay is required", "Minimum stay must be between 2 and 30 nights",
        ),
    )


def validate_features_compliance(data: dict[str, Any], current_year: int) -> dict[str, FieldError]:
    return collect(
        furnishing_description=check_required_text(
            data.get("furnishing_description"), "Furnishing description is required"
        ),
        featured_amenities=check_selection(
            data.get("featured_amenities"), "Please select at least one featured amenity"
        ),
        house_rules=check_selection(
            data.get("house_rules"), "Please select at least one house rule"
        ),
        local_highlights=check_text_length(data.get("local_highlights"), "Local highlights"),
    )


def validate_media_upload(data: dict[str, Any], current_year: int) -> dict[str, FieldError]:
    return collect(
        photos=check_photos(data.get("photos"), MIN_PHOTOS),
        virtual_tour=check_video(data.get("virtual_tour"), required=True),
        video_360=check_video(data.get("video_360"), required=False, label="360 video"),
    )


def validate_documents_upload(data: dict[str, Any], current_year: int) -> dict[str, FieldError]:
    checks = {}
    for name in MANDATORY_DOCUMENTS:
        checks[name] = _check_pdf(data.get(name), name, required=True)
    for name, flag in CONDITIONAL_DOCUMENTS.items():
        checks[name] = _check_pdf(data.get(name), name, required=bool(data.get(flag)))
    return collect(**checks)


def _check_pdf(record: Any, name: str, required: bool) -> Optional[FieldError]:
    return check_document(
        record,
        document_label(name),
        DOCUMENT_MAX_SIZE_MB,
        DOCUMENT_TYPES,
        "{label} must be a PDF file",
        required=required,
    )


def validate_legal_consents(data: dict[str, Any], current_year: int) -> dict[str, FieldError]:
    return check_consents(data, LEGAL_CONSENTS)


def validate_listing_purpose(data: dict[str, Any], current_year: int) -> dict[str, FieldError]:
    return collect(
        selected_purpose=check_choice(
            data.get("selected_purpose"), LISTING_PURPOSES, "Please select a listing purpose"
        ),
    )


SECTION_VALIDATORS: Final = {
    "property_details": validate_property_details,
    "pricing_valuation": validate_pricing_valuation,
    "features_compliance": validate_features_compliance,
    "media_upload": validate_media_upload,
    "documents_upload": validate_documents_upload,
    "legal_consents": validate_legal_consents,
    "listing_purpose": validate_listing_purpose,
}


# =============================================================================
# Payloads
# =============================================================================


def _split_market(details: dict[str, Any]) -> tuple[str, str]:
    """Return (city, state) for the chosen market."""
    market = details.get("market") or ""
    if market == "Other":
        market = details.get("other_market") or ""
    city, _, state = market.partition(",")
    return city.strip(), state.strip()


def build_create_payload(draft: PropertyDraft) -> dict:
    """Shape the details section for the create-property call."""
    details = draft.section(DETAILS_SECTION)
    city, state = _split_market(details)
    bedrooms = parse_int(details.get("bedrooms"))
    bathrooms = parse_number(details.get("bathrooms"))
    property_type = details.get("property_type") or ""

    return {
        "title": draft.title,
        "description": (
            f"{draft.title} - {property_type} with {details.get('bedrooms')} bedrooms "
            f"and {details.get('bathrooms')} bathrooms"
        ),
        "category": property_type.lower(),
        "type": PropertyKind.RESIDENTIAL.value,
        "location": {
            "address": details.get("full_address", ""),
            "city": city,
            "state": state,
            "country": "USA",
            "zipCode": details.get("pincode", ""),
        },
        "capacity": {
            "maxGuests": parse_int(details.get("guest_capacity")),
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "beds": bedrooms,
        },
        "squareFootage": parse_number(details.get("square_footage")),
        "yearBuilt": parse_int(details.get("year_built")),
    }


def _pricing_payload(data: dict[str, Any]) -> dict:
    return {
        "propertyValueEstimate": {
            "value": parse_number(data.get("estimated_property_value")),
            "currency": "USD",
        },
        "rentAmount": {
            "basePrice": parse_number(data.get("nightly_rate")),
            "weekendPrice": parse_number(data.get("weekend_rate")) or 0,
            "currency": "USD",
        },
        "maintenanceFee": {
            "amount": parse_number(data.get("cleaning_fee")),
            "currency": "USD",
        },
        "availableWeeksPerYear": parse_int(data.get("rental_availability")),
        "minimumStay": parse_int(data.get("minimum_stay")),
    }


def build_section_payload(draft: PropertyDraft, section: str) -> dict:
    """Shape one section for the save-draft call."""
    data = draft.section(section)
    payload = {"title": draft.title, "type": PropertyKind.RESIDENTIAL.value, "section": section}
    if section == DETAILS_SECTION:
        payload.update(build_create_payload(draft))
    elif section == "pricing_valuation":
        payload.update(_pricing_payload(data))
    else:
        payload["data"] = export_section_data(data)
    return payload


def build_registry_fields(draft: PropertyDraft) -> dict:
    """Display fields copied onto the homeowner registry entry."""
    details = draft.sections.get(DETAILS_SECTION, {})
    pricing = draft.sections.get("pricing_valuation", {})
    photos = draft.sections.get("media_upload", {}).get("photos")
    city, state = _split_market(details)

    return {
        "location": ", ".join(part for part in (city, state) if part) or details.get("full_address", ""),
        "image": cover_image(photos, PLACEHOLDER_IMAGE),
        "price": parse_number(pricing.get("estimated_property_value")),
        "bedrooms": parse_int(details.get("bedrooms")),
        "bathrooms": parse_number(details.get("bathrooms")),
        "square_footage": parse_number(details.get("square_footage")),
    }


# =============================================================================
# Flow
# =============================================================================

RESIDENTIAL_FLOW: Final[PropertyFlow] = PropertyFlow(
    kind=PropertyKind.RESIDENTIAL,
    default_sections=DEFAULT_SECTIONS,
    section_validators=SECTION_VALIDATORS,
    upload_fields={
        "media_upload": {
            "photos": UploadKind.IMAGES,
            "virtual_tour": UploadKind.VIDEOS,
            "video_360": UploadKind.VIDEOS,
        },
    },
    document_sections=("documents_upload",),
    create_payload=build_create_payload,
    section_payload=build_section_payload,
    registry_fields=build_registry_fields,
)

register_flow(RESIDENTIAL_FLOW)
