import copy

from src.models import BusinessRecord, ImageType
from src.validator import (
    REQUIREMENT_LABELS,
    partition_by_completeness,
    validate,
    validate_business,
)
from tests.factories import complete_record, make_image as _image


def test_complete_record():
    result = validate_business(complete_record())

    assert result.is_complete is True
    assert result.missing == []
    assert result.completion_percentage == 100
    assert len(result.requirements) == 17
    assert all(result.requirements.values())


def test_empty_record_misses_everything_in_declaration_order():
    result = validate(BusinessRecord(name=""))

    assert result.is_complete is False
    assert result.missing == list(REQUIREMENT_LABELS.values())
    assert result.completion_percentage == 0


def test_percentage_is_rounded_share_of_requirements():
    # 10 of 17 requirements hold
    record = complete_record(
        gmail="",
        gmail_app_password="",
        description=" ",
        contractor_type="",
        images=[],
    )
    result = validate_business(record)

    assert sum(result.requirements.values()) == 10
    assert result.completion_percentage == round(100 * 10 / 17)
    assert result.missing == [
        "Description",
        "Contractor Type",
        "Gmail Account",
        "Gmail App Password",
        "Logo Image",
        "Banner Image",
        "At Least 1 Additional Image",
    ]


def test_missing_phone_reported():
    result = validate_business(complete_record(phone=""))
    assert result.missing == ["Phone Number"]
    assert result.requirements["phone"] is False


def test_numeric_fields_accept_legacy_text():
    record = complete_record(
        year_founded=None, year_founded_text="early nineties",
        company_size=None, company_size_text="a few",
    )
    assert validate_business(record).is_complete

    record = complete_record(year_founded=None, year_founded_text="", company_size=None, company_size_text="")
    assert validate_business(record).missing == ["Year Founded", "Company Size"]


def test_services_with_only_blank_entries_do_not_count():
    result = validate_business(complete_record(main_services=[""], other_services=[]))
    assert result.missing == ["Main Services", "Other Services"]


def test_image_details():
    images = [
        _image("Acme-logo.png", ImageType.LOGO),
        _image("Acme-banner.jpg", ImageType.BANNER),
        _image("photo1.jpg", ImageType.IMAGE),
        _image("photo2.jpg", ImageType.IMAGE),
    ]
    result = validate_business(complete_record(images=images))
    details = result.image_details

    assert details.total == 4
    assert details.has_logo and details.has_banner
    assert details.additional_count == 2
    assert details.logo_image.name == "Acme-logo.png"
    assert details.banner_image.name == "Acme-banner.jpg"
    assert result.requirements["has_additional_images"] is True


def test_no_cap_on_additional_images():
    images = [_image("logo.png", ImageType.LOGO), _image("banner.png", ImageType.BANNER)]
    images += [_image(f"photo{i}.jpg", ImageType.IMAGE) for i in range(9)]
    result = validate_business(complete_record(images=images))
    assert result.is_complete
    assert result.image_details.additional_count == 9


def test_logo_only_has_no_additional_images():
    result = validate_business(complete_record(images=[_image("logo.png", ImageType.LOGO)]))
    assert result.missing == ["Banner Image", "At Least 1 Additional Image"]


def test_validate_is_pure():
    record = complete_record(phone="")
    before = copy.deepcopy(record)
    assert validate_business(record) == validate_business(record)
    assert record == before


def test_partition_by_completeness():
    records = [complete_record(name="A"), complete_record(name="B", email=""), complete_record(name="C")]
    complete, incomplete = partition_by_completeness(records)

    assert [v.record.name for v in complete] == ["A", "C"]
    assert [v.record.name for v in incomplete] == ["B"]
    assert incomplete[0].validation.missing == ["Email"]


def test_combined_logo_banner_file_counts_for_both():
    result = validate_business(complete_record(images=[
        _image("logo-banner.png", ImageType.LOGO),
        _image("photo1.jpg", ImageType.IMAGE),
    ]))
    details = result.image_details

    assert details.logo_image is details.banner_image
    assert details.has_logo and details.has_banner
    assert details.additional_count == 1
    assert result.is_complete
