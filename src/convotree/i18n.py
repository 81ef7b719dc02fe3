"""Localization catalogs and lookup."""

from __future__ import annotations

from collections.abc import Mapping

EN: dict[str, str] = {
    "greeting": (
        "Welcome! Please use one of the following commands:\n"
        "• /students – to manage student records\n"
        "• /browse – to browse student records\n"
        "• /lang <code> – to change the language"
    ),
    "processing": "Processing...",
    "operation_completed": "Operation completed.",
    "operation_failed": "Something went wrong. Please try again.",
    "operation_cancelled": "Operation cancelled.",
    "please_send_text": "Please send a text message.",
    "please_select_option": "Please select one of the options.",
    "invalid_selection": "Invalid selection.",
    "you_selected": "You selected",
    "tap_button_hint": "Please use the buttons on this message.",
    "no_results": "No results found.",
    "page_info": "Page {current} of {total}",
    "cancel": "Cancel",
    "previous": "« Previous",
    "next": "Next »",
    "page_size_dec": "Fewer",
    "page_size_inc": "More",
    "language_changed": "Language changed.",
    "unknown_language": "Unknown language: {lang}",
    # students feature
    "students_menu": "What would you like to do with student records?",
    "student_create": "Create",
    "student_update": "Update",
    "student_delete": "Delete",
    "student_browse": "Browse",
    "enter_first_name": "Enter the first name:",
    "enter_last_name": "Enter the last name:",
    "enter_group": "Enter the group:",
    "enter_birth_year": "Enter the birth year:",
    "invalid_birth_year": "Please enter a four digit year.",
    "value_required": "A value is required.",
    "confirm_student": "Save {first_name} {last_name} ({group}, {birth_year})?",
    "confirm_yes": "Save",
    "enter_student_name_search": "Enter the name of the student to look for:",
    "select_student": "Select a student for \"{query}\":",
    "select_field": "What do you want to update for {name}?",
    "field_first_name": "First name",
    "field_last_name": "Last name",
    "field_group": "Group",
    "field_birth_year": "Birth year",
    "enter_new_value": "Enter the new value:",
    "confirm_delete": "Delete {name}?",
    "confirm_delete_yes": "Delete",
    "students_title": "Students",
    "student_card": "{name}\nGroup: {group}\nBirth year: {birth_year}",
}

AR: dict[str, str] = {
    "greeting": (
        "مرحباً! استخدم أحد الأوامر التالية:\n"
        "• /students – لإدارة سجلات الطلاب\n"
        "• /browse – لتصفح سجلات الطلاب\n"
        "• /lang <code> – لتغيير اللغة"
    ),
    "processing": "جارٍ المعالجة...",
    "operation_completed": "تمت العملية بنجاح.",
    "operation_failed": "حدث خطأ. يرجى المحاولة مرة أخرى.",
    "operation_cancelled": "تم إلغاء العملية.",
    "please_send_text": "يرجى إرسال رسالة نصية.",
    "please_select_option": "يرجى اختيار أحد الخيارات.",
    "invalid_selection": "اختيار غير صالح.",
    "you_selected": "اخترت",
    "tap_button_hint": "يرجى استخدام الأزرار في هذه الرسالة.",
    "no_results": "لا توجد نتائج.",
    "page_info": "صفحة {current} من {total}",
    "cancel": "إلغاء",
    "previous": "« السابق",
    "next": "التالي »",
    "page_size_dec": "أقل",
    "page_size_inc": "أكثر",
    "language_changed": "تم تغيير اللغة.",
    "unknown_language": "لغة غير معروفة: {lang}",
}


class Translator:
    """Look up localized strings by key with placeholder substitution."""

    def __init__(self, catalogs: Mapping[str, Mapping[str, str]] | None = None, default_language: str = "en") -> None:
        self._catalogs = dict(catalogs) if catalogs is not None else {"en": EN, "ar": AR}
        self.default_language = default_language

    @property
    def languages(self) -> set[str]:
        return set(self._catalogs)

    def translate(self, key: str, lang: str | None = None, params: Mapping[str, object] | None = None) -> str:
        catalog = self._catalogs.get(lang or self.default_language, {})
        text = catalog.get(key)
        if text is None:
            text = self._catalogs.get(self.default_language, {}).get(key, key)
        if params:
            for name, value in params.items():
                text = text.replace(f"{{{name}}}", str(value))
        return text
