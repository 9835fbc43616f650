"""Core Business Logic Module

Module Structure:
    - jenkins/          : Script console client, Groovy templates, envelope
                          decoding, permission naming and reconciliation
    - admin_service.py  : AdminOperations facade (the seven account and
                          permission operations plus dry-run planning)
    - validators.py     : Input validation for usernames, e-mail, free text
                          and permission names

Public APIs:
    Admin (jenkins_admin.core.admin_service):
        - AdminOperations
        - build_admin()
        - DEFAULT_DESCRIPTION

    Jenkins client (jenkins_admin.core.jenkins):
        - JenkinsClient, ScriptExecutionClient
        - UserService, PermissionService
        - CommandTemplateRegistry
        - encode_permission(), build_addressable_table(), plan_reconcile()
"""
