from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import User


@admin.register(User)
class CBTUserAdmin(UserAdmin):
    list_display = ('email', 'matric', 'first_name', 'last_name', 'department', 'level', 'role')
    list_filter = ('role', 'department', 'level', 'is_staff')
    search_fields = ('email', 'matric', 'first_name', 'last_name')
    fieldsets = UserAdmin.fieldsets + (
        ('Student', {'fields': ('role', 'matric', 'department', 'level', 'phone_number')}),
    )
