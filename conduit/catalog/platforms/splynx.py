"""Splynx (ISP billing / CRM) catalog."""

from conduit.catalog.models import (
    ActionDefinition,
    EventType,
    HttpMethod,
    PlatformCatalog,
    TriggerDefinition,
    schema,
)

DOCS = "https://splynx.docs.apiary.io/#reference"

CUSTOMER_FIELDS = ["id", "name", "email", "phone", "status", "category", "date_add"]
SERVICE_FIELDS = ["service_id", "customer_id", "tariff_id", "status", "start_date"]
INVOICE_FIELDS = ["invoice_id", "customer_id", "number", "total", "status", "date_till"]
PAYMENT_FIELDS = ["payment_id", "customer_id", "invoice_id", "amount", "payment_type", "date"]
TICKET_FIELDS = ["ticket_id", "customer_id", "subject", "priority", "status", "assign_to"]


def _trigger(key, name, description, category, resource_type, fields, docs, sample=None):
    return TriggerDefinition(
        key=key,
        name=name,
        description=description,
        category=category,
        event_type=EventType.WEBHOOK,
        resource_type=resource_type,
        payload_schema=schema(**{f: "string" for f in fields}),
        sample_payload=sample,
        available_fields=fields,
        docs_url=f"{DOCS}/{docs}",
    )


TRIGGERS = (
    _trigger(
        "customer_created",
        "Customer Created",
        "Triggered when a new customer is created in Splynx",
        "Customers",
        "customer",
        CUSTOMER_FIELDS,
        "customers",
        sample={
            "id": 12345,
            "name": "John Doe",
            "email": "john@example.com",
            "phone": "+1234567890",
            "status": "active",
        },
    ),
    _trigger(
        "customer_updated",
        "Customer Updated",
        "Triggered when customer information is updated",
        "Customers",
        "customer",
        [*CUSTOMER_FIELDS, "changes"],
        "customers",
    ),
    _trigger(
        "customer_blocked",
        "Customer Blocked",
        "Triggered when a customer account is blocked",
        "Customers",
        "customer",
        CUSTOMER_FIELDS,
        "customers",
    ),
    _trigger(
        "customer_deleted",
        "Customer Deleted",
        "Triggered when a customer is deleted",
        "Customers",
        "customer",
        ["id", "name"],
        "customers",
    ),
    _trigger(
        "service_created",
        "Service Created",
        "Triggered when a new service is added to a customer",
        "Services",
        "service",
        SERVICE_FIELDS,
        "services",
    ),
    _trigger(
        "service_activated",
        "Service Activated",
        "Triggered when a service is activated",
        "Services",
        "service",
        SERVICE_FIELDS,
        "services",
    ),
    _trigger(
        "service_suspended",
        "Service Suspended",
        "Triggered when a service is suspended",
        "Services",
        "service",
        [*SERVICE_FIELDS, "reason"],
        "services",
    ),
    _trigger(
        "service_terminated",
        "Service Terminated",
        "Triggered when a service is terminated",
        "Services",
        "service",
        SERVICE_FIELDS,
        "services",
    ),
    _trigger(
        "invoice_created",
        "Invoice Created",
        "Triggered when a new invoice is generated",
        "Billing",
        "invoice",
        INVOICE_FIELDS,
        "invoices",
    ),
    _trigger(
        "invoice_paid",
        "Invoice Paid",
        "Triggered when an invoice is fully paid",
        "Billing",
        "invoice",
        INVOICE_FIELDS,
        "invoices",
    ),
    _trigger(
        "invoice_overdue",
        "Invoice Overdue",
        "Triggered when an invoice passes its due date",
        "Billing",
        "invoice",
        [*INVOICE_FIELDS, "days_overdue"],
        "invoices",
    ),
    _trigger(
        "payment_received",
        "Payment Received",
        "Triggered when a payment is recorded",
        "Billing",
        "payment",
        PAYMENT_FIELDS,
        "payments",
    ),
    _trigger(
        "payment_failed",
        "Payment Failed",
        "Triggered when a payment attempt fails",
        "Billing",
        "payment",
        [*PAYMENT_FIELDS, "error"],
        "payments",
    ),
    _trigger(
        "ticket_created",
        "Ticket Created",
        "Triggered when a support ticket is opened",
        "Support",
        "ticket",
        TICKET_FIELDS,
        "tickets",
    ),
    _trigger(
        "ticket_updated",
        "Ticket Updated",
        "Triggered when a support ticket changes",
        "Support",
        "ticket",
        TICKET_FIELDS,
        "tickets",
    ),
    _trigger(
        "ticket_closed",
        "Ticket Closed",
        "Triggered when a support ticket is closed",
        "Support",
        "ticket",
        TICKET_FIELDS,
        "tickets",
    ),
    _trigger(
        "device_online",
        "Device Online",
        "Triggered when a network device comes online",
        "Network",
        "device",
        ["device_id", "title", "ip", "status"],
        "routers",
    ),
    _trigger(
        "device_offline",
        "Device Offline",
        "Triggered when a network device goes offline",
        "Network",
        "device",
        ["device_id", "title", "ip", "status"],
        "routers",
    ),
    _trigger(
        "task_created",
        "Task Created",
        "Triggered when a scheduling task is created",
        "Tasks",
        "task",
        ["task_id", "title", "assignee", "scheduled_from"],
        "tasks",
    ),
    _trigger(
        "task_completed",
        "Task Completed",
        "Triggered when a scheduling task is completed",
        "Tasks",
        "task",
        ["task_id", "title", "assignee", "closed_at"],
        "tasks",
    ),
)


ACTIONS = (
    ActionDefinition(
        key="create_customer",
        name="Create Customer",
        description="Create a new customer in Splynx",
        category="Customers",
        http_method=HttpMethod.POST,
        endpoint="/api/2.0/admin/customers",
        parameter_schema=schema(
            required=["name", "email"],
            name=("string", "Customer full name"),
            email=("string", "Customer email address"),
            phone=("string", "Phone number"),
            street_1=("string", "Street address line 1"),
            city=("string", "City"),
            zip_code=("string", "ZIP/Postal code"),
            country=("string", "Country code"),
        ),
        required_fields=["name", "email"],
        optional_fields=["phone", "street_1", "city", "zip_code", "country"],
        resource_type="customer",
        docs_url=f"{DOCS}/customers/customers-collection/create-customer",
    ),
    ActionDefinition(
        key="update_customer",
        name="Update Customer",
        description="Update an existing customer record",
        category="Customers",
        http_method=HttpMethod.PUT,
        endpoint="/api/2.0/admin/customers/{id}",
        parameter_schema=schema(
            required=["id"],
            id=("number", "Customer ID"),
            name=("string", "Customer full name"),
            email=("string", "Customer email address"),
            phone=("string", "Phone number"),
            status=("string", "new, active, blocked or inactive"),
        ),
        required_fields=["id"],
        optional_fields=["name", "email", "phone", "status"],
        idempotent=True,
        resource_type="customer",
        docs_url=f"{DOCS}/customers/customer/update-customer",
    ),
    ActionDefinition(
        key="get_customer",
        name="Get Customer",
        description="Retrieve customer details by ID",
        category="Customers",
        http_method=HttpMethod.GET,
        endpoint="/api/2.0/admin/customers/{id}",
        parameter_schema=schema(required=["id"], id=("number", "Customer ID")),
        required_fields=["id"],
        idempotent=True,
        resource_type="customer",
        docs_url=f"{DOCS}/customers/customer/view-customer",
    ),
    ActionDefinition(
        key="list_customers",
        name="List Customers",
        description="List customers; 'filters' is translated into Splynx main_attributes",
        category="Customers",
        http_method=HttpMethod.GET,
        endpoint="/api/2.0/admin/customers",
        parameter_schema=schema(
            filters=("array", "Filter clauses [{field, operator, value}]"),
            limit=("number", "Number of results to return"),
            offset=("number", "Offset for pagination"),
        ),
        optional_fields=["filters", "limit", "offset"],
        idempotent=True,
        resource_type="customer",
        docs_url=f"{DOCS}/customers/customers-collection/list-customers",
    ),
    ActionDefinition(
        key="block_customer",
        name="Block Customer",
        description="Block a customer account",
        category="Customers",
        http_method=HttpMethod.POST,
        endpoint="/api/2.0/admin/customers/{id}/block",
        parameter_schema=schema(
            required=["id"],
            id=("number", "Customer ID"),
            reason=("string", "Reason for blocking"),
        ),
        required_fields=["id"],
        optional_fields=["reason"],
        idempotent=True,
        resource_type="customer",
        docs_url=f"{DOCS}/customers",
    ),
    ActionDefinition(
        key="create_service",
        name="Create Service",
        description="Add an internet service to a customer",
        category="Services",
        http_method=HttpMethod.POST,
        endpoint="/api/2.0/admin/customers/customer/{customer_id}/internet-services",
        parameter_schema=schema(
            required=["customer_id", "tariff_id"],
            customer_id=("number", "Customer ID"),
            tariff_id=("number", "Tariff ID"),
            description=("string", "Service description"),
            start_date=("string", "Start date (YYYY-MM-DD)"),
        ),
        required_fields=["customer_id", "tariff_id"],
        optional_fields=["description", "start_date"],
        resource_type="service",
        docs_url=f"{DOCS}/services/internet-services",
    ),
    ActionDefinition(
        key="suspend_service",
        name="Suspend Service",
        description="Suspend a customer's internet service",
        category="Services",
        http_method=HttpMethod.POST,
        endpoint="/api/2.0/admin/customers/customer/{customer_id}/internet-services/{id}/suspend",
        parameter_schema=schema(
            required=["customer_id", "id"],
            customer_id=("number", "Customer ID"),
            id=("number", "Service ID"),
        ),
        required_fields=["customer_id", "id"],
        idempotent=True,
        resource_type="service",
        docs_url=f"{DOCS}/services",
    ),
    ActionDefinition(
        key="create_invoice",
        name="Create Invoice",
        description="Create an invoice for a customer",
        category="Billing",
        http_method=HttpMethod.POST,
        endpoint="/api/2.0/admin/finance/invoices",
        parameter_schema=schema(
            required=["customer_id"],
            customer_id=("number", "Customer ID"),
            items=("array", "Invoice line items"),
            date_till=("string", "Due date (YYYY-MM-DD)"),
        ),
        required_fields=["customer_id"],
        optional_fields=["items", "date_till"],
        resource_type="invoice",
        docs_url=f"{DOCS}/invoices/invoices-collection",
    ),
    ActionDefinition(
        key="get_invoice",
        name="Get Invoice",
        description="Retrieve an invoice by ID",
        category="Billing",
        http_method=HttpMethod.GET,
        endpoint="/api/2.0/admin/finance/invoices/{id}",
        parameter_schema=schema(required=["id"], id=("number", "Invoice ID")),
        required_fields=["id"],
        idempotent=True,
        resource_type="invoice",
        docs_url=f"{DOCS}/invoices/invoice",
    ),
    ActionDefinition(
        key="send_invoice",
        name="Send Invoice",
        description="Email an invoice to the customer",
        category="Billing",
        http_method=HttpMethod.POST,
        endpoint="/api/2.0/admin/finance/invoices/{id}/send",
        parameter_schema=schema(required=["id"], id=("number", "Invoice ID")),
        required_fields=["id"],
        resource_type="invoice",
        docs_url=f"{DOCS}/invoices",
    ),
    ActionDefinition(
        key="record_payment",
        name="Record Payment",
        description="Record a payment against a customer account",
        category="Billing",
        http_method=HttpMethod.POST,
        endpoint="/api/2.0/admin/finance/payments",
        parameter_schema=schema(
            required=["customer_id", "amount"],
            customer_id=("number", "Customer ID"),
            amount=("number", "Payment amount"),
            invoice_id=("number", "Invoice being paid"),
            payment_type=("number", "Payment method ID"),
            comment=("string", "Comment"),
        ),
        required_fields=["customer_id", "amount"],
        optional_fields=["invoice_id", "payment_type", "comment"],
        resource_type="payment",
        docs_url=f"{DOCS}/payments/payments-collection",
    ),
    ActionDefinition(
        key="create_ticket",
        name="Create Ticket",
        description="Open a support ticket",
        category="Support",
        http_method=HttpMethod.POST,
        endpoint="/api/2.0/admin/support/tickets",
        parameter_schema=schema(
            required=["customer_id", "subject"],
            customer_id=("number", "Customer ID"),
            subject=("string", "Ticket subject"),
            message=("string", "Initial message"),
            priority=("string", "low, medium, high or urgent"),
            group_id=("number", "Ticket group"),
        ),
        required_fields=["customer_id", "subject"],
        optional_fields=["message", "priority", "group_id"],
        resource_type="ticket",
        docs_url=f"{DOCS}/tickets/tickets-collection",
    ),
    ActionDefinition(
        key="update_ticket",
        name="Update Ticket",
        description="Update a support ticket",
        category="Support",
        http_method=HttpMethod.PUT,
        endpoint="/api/2.0/admin/support/tickets/{id}",
        parameter_schema=schema(
            required=["id"],
            id=("number", "Ticket ID"),
            status_id=("number", "New status"),
            priority=("string", "Priority"),
            assign_to=("number", "Administrator ID"),
        ),
        required_fields=["id"],
        optional_fields=["status_id", "priority", "assign_to"],
        idempotent=True,
        resource_type="ticket",
        docs_url=f"{DOCS}/tickets/ticket",
    ),
    ActionDefinition(
        key="close_ticket",
        name="Close Ticket",
        description="Close a support ticket",
        category="Support",
        http_method=HttpMethod.POST,
        endpoint="/api/2.0/admin/support/tickets/{id}/close",
        parameter_schema=schema(required=["id"], id=("number", "Ticket ID")),
        required_fields=["id"],
        idempotent=True,
        resource_type="ticket",
        docs_url=f"{DOCS}/tickets",
    ),
    ActionDefinition(
        key="send_sms",
        name="Send SMS",
        description="Send an SMS to a customer",
        category="Notifications",
        http_method=HttpMethod.POST,
        endpoint="/api/2.0/admin/messages/sms",
        parameter_schema=schema(
            required=["customer_id", "message"],
            customer_id=("number", "Customer ID"),
            message=("string", "Message text"),
        ),
        required_fields=["customer_id", "message"],
        resource_type="message",
        docs_url=f"{DOCS}/messages",
    ),
    ActionDefinition(
        key="send_email",
        name="Send Email",
        description="Send an email to a customer",
        category="Notifications",
        http_method=HttpMethod.POST,
        endpoint="/api/2.0/admin/messages/email",
        parameter_schema=schema(
            required=["customer_id", "subject", "message"],
            customer_id=("number", "Customer ID"),
            subject=("string", "Email subject"),
            message=("string", "Email body"),
        ),
        required_fields=["customer_id", "subject", "message"],
        resource_type="message",
        docs_url=f"{DOCS}/messages",
    ),
    ActionDefinition(
        key="create_task",
        name="Create Task",
        description="Create a scheduling task",
        category="Tasks",
        http_method=HttpMethod.POST,
        endpoint="/api/2.0/admin/scheduling/tasks",
        parameter_schema=schema(
            required=["title"],
            title=("string", "Task title"),
            description=("string", "Task description"),
            customer_id=("number", "Related customer"),
            assignee=("number", "Administrator ID"),
            scheduled_from=("string", "Start time"),
        ),
        required_fields=["title"],
        optional_fields=["description", "customer_id", "assignee", "scheduled_from"],
        resource_type="task",
        docs_url=f"{DOCS}/tasks",
    ),
)

CATALOG = PlatformCatalog(platform_type="splynx", triggers=TRIGGERS, actions=ACTIONS)
