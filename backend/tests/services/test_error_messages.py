"""Тесты дружелюбных сообщений об ошибках."""

from barcodegen.services.error_messages import (
    INTERNAL_ERROR,
    friendly_for,
    get_friendly_error,
)
from barcodegen.services.errors import (
    ArchiveWriteError,
    GenerationCancelledError,
    ItemCountError,
    LayoutInfeasibleError,
    SymbologyError,
    ValidationError,
)


class TestGetFriendlyError:
    def test_format_params(self):
        error = get_friendly_error("symbology", value="ABC", barcode_type="ean13")
        assert error.message == "Значение «ABC» нельзя закодировать как ean13"
        assert error.hint

    def test_unknown_key(self):
        assert get_friendly_error("no_such_key") is INTERNAL_ERROR

    def test_to_dict_skips_empty(self):
        assert get_friendly_error("cancelled").to_dict() == {"message": "Генерация отменена"}

    def test_min_items(self):
        error = get_friendly_error("too_few_items", min_items=20)
        assert "20" in error.message

    def test_max_items(self):
        error = get_friendly_error("too_many_items", max_items=1000)
        assert error.message == "Слишком много значений, максимум 1000"


class TestFriendlyFor:
    def test_symbology(self):
        friendly = friendly_for(SymbologyError("12AB", "ean13", "недопустимые символы", index=3))

        assert "12AB" in friendly.message
        assert friendly.details

    def test_too_few_items(self):
        friendly = friendly_for(ItemCountError(19, minimum=20))

        assert friendly.message == "Для печатного листа нужно минимум 20 значений"
        assert "ZIP" in friendly.hint
        assert "19" in friendly.details

    def test_too_many_items(self):
        friendly = friendly_for(ItemCountError(1500, maximum=1000))

        assert friendly.message == "Слишком много значений, максимум 1000"
        assert "Ширина" not in friendly.hint

    def test_other_validation_keeps_generic_hint(self):
        friendly = friendly_for(ValidationError("Ширина вне диапазона", "config.dimensions.width"))
        assert friendly.message == "Проверьте параметры штрихкода"

    def test_each_kind_has_message(self):
        errors = [
            ValidationError("Ширина вне диапазона", "config.dimensions.width"),
            LayoutInfeasibleError(60.0, 30.0),
            ArchiveWriteError("disk full"),
            GenerationCancelledError(3, 10),
        ]
        for exc in errors:
            friendly = friendly_for(exc)
            assert friendly is not INTERNAL_ERROR
            assert friendly.message != INTERNAL_ERROR.message
            assert friendly.details == exc.message


class TestErrorDetails:
    def test_symbology_to_dict(self):
        data = SymbologyError("12AB", "ean13", "недопустимые символы", index=3).to_dict()

        assert data["kind"] == "symbology"
        assert data["value"] == "12AB"
        assert data["index"] == 3

    def test_layout_to_dict(self):
        data = LayoutInfeasibleError(60.0, 30.0).to_dict()

        assert data["kind"] == "layout_infeasible"
        assert data["cell_width_mm"] == 60.0

    def test_item_count_to_dict(self):
        data = ItemCountError(19, minimum=20).to_dict()

        assert data["kind"] == "validation"
        assert data["path"] == "data"
        assert data["count"] == 19
        assert data["min_items"] == 20
        assert "max_items" not in data
