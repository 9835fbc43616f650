"""Jenkins local account and global permission administration.

To use the facade:
    from jenkins_admin.core.admin_service import AdminOperations, build_admin

To use the lower-level services:
    from jenkins_admin.core.jenkins import JenkinsClient, ScriptExecutionClient, UserService
"""
