"""
Dynamics 365 Finance & Operations.
"""

import re

from flowscribe.models.pages import PagePattern
from flowscribe.platforms.base import PageRule, TargetPlatform
from flowscribe.platforms.registry import register_platform


@register_platform("d365")
class D365Platform(TargetPlatform):
    """
    Heuristics for the D365 F&O web client.
    
    The client renders forms inside nested frames, marks most controls with
    ``data-dyn-controlname`` and signs users in through Microsoft Entra ID.
    """
    
    name = "d365"
    
    stable_attribute = "data-dyn-controlname"
    
    identity_provider_hosts = (
        "login.microsoftonline.com",
        "login.live.com",
        "sts.windows.net",
    )
    redirect_url_markers = ("oauth2",)
    redirect_title_patterns = (
        re.compile(r"^Redirecting", re.IGNORECASE),
        re.compile(r"redirecting", re.IGNORECASE),
        re.compile(r"we're redirecting", re.IGNORECASE),
    )
    sign_in_title_patterns = (re.compile(r"sign in to your account", re.IGNORECASE),)
    sign_in_vendor_pattern = re.compile(r"microsoft", re.IGNORECASE)
    
    page_rules = (
        PageRule("SalesTable", "SalesOrderDetailsPage", "Sales Order Details", PagePattern.DETAILS_PAGE),
        PageRule("SalesTableListPage", "AllSalesOrdersListPage", "All Sales Orders", PagePattern.LIST_PAGE),
        PageRule("CustTable", "CustomerPage", "Customer", PagePattern.DETAILS_PAGE),
        PageRule("CustTableListPage", "AllCustomersListPage", "All Customers", PagePattern.LIST_PAGE),
        PageRule("InventTable", "ItemPage", "Item", PagePattern.DETAILS_PAGE),
        PageRule("InventTableListPage", "AllItemsListPage", "All Items", PagePattern.LIST_PAGE),
        PageRule("CustParameters", "AccountsReceivableParametersPage", "AR Parameters", PagePattern.TABLE_OF_CONTENTS),
        PageRule("Workspace", "WorkspacePage", "Workspace", PagePattern.WORKSPACE),
        PageRule("Dialog", "DialogPage", "Dialog", PagePattern.DIALOG),
    )
    title_noise = re.compile(r"Dynamics 365|Finance and Operations|F&O", re.IGNORECASE)
    app_url_markers = (".dynamics.com", "dynamics365", "/namespaces/")
    caption_selectors = (
        'div[aria-label*="Page title"]',
        '[data-dyn-role="pageTitle"]',
        ".page-title",
        "h1",
    )
    breadcrumb_selectors = (
        '[aria-label*="breadcrumb"]',
        ".breadcrumb",
        'nav[aria-label*="navigation"]',
    )
    
    nav_class_markers = (
        "modulesPane",
        "navigation",
        "nav-pane",
        "NavPane",
        "treeView",
        "tree-view",
    )
    nav_id_markers = ("nav", "modules")
    nav_control_marker = "Nav"
    expand_nav_control_names = ("NavBarDashboard",)
    expand_nav_label_markers = ("expand the navigation pane",)
    
    heavy_control_names = (
        "SystemDefinedNewButton",
        "OK",
        "SystemDefinedDeleteButton",
        "Yes",
        "No",
        "Save",
    )
    heavy_button_names = ("OK", "Save", "New", "Delete", "Yes", "No")
    
    busy_selectors = (
        "#ShellBlockingDiv",
        ".dyn-loading",
        ".busyIndicator",
        "[data-dyn-role='BusyIndicator']",
    )
    shell_selectors = ("[data-dyn-controlname='NavBarDashboard']", "#navPaneModule", ".modulesPane")
