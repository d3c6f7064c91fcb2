from django.contrib import admin

from .models import Token, Transaction


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ('reference', 'email', 'amount', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('reference', 'email')


@admin.register(Token)
class TokenAdmin(admin.ModelAdmin):
    list_display = ('token', 'student_email', 'amount', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('token', 'reference', 'student_email')
