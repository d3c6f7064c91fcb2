from django.contrib import admin

from .models import Result, Submission


@admin.register(Result)
class ResultAdmin(admin.ModelAdmin):
    list_display = ('student_matric', 'course_code', 'score', 'total', 'ca_score', 'total_score', 'created_at')
    list_filter = ('course_code',)
    search_fields = ('student_matric',)
    readonly_fields = ('ca_score', 'total_score', 'created_at')


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ('student_matric', 'student_name', 'course_code', 'submitted_at')
    list_filter = ('course_code',)
    search_fields = ('student_matric', 'student_name')
