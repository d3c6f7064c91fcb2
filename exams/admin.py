from django.contrib import admin

from .models import Exam, Question


class QuestionInline(admin.TabularInline):
    model = Question
    extra = 0


@admin.register(Exam)
class ExamAdmin(admin.ModelAdmin):
    list_display = ('course_code', 'course', 'department', 'level', 'duration_minutes', 'is_active')
    search_fields = ('course_code', 'course')
    inlines = [QuestionInline]


admin.site.register(Question)
