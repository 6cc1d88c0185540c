"""
Single-page dashboard served at /

Talks to the JSON API only; every mutation is followed by a fresh
GET /api/dashboard.
"""

DASHBOARD_HTML = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>APK Tracker</title>
    <style>
        * { box-sizing: border-box; margin: 0; padding: 0; }
        body {
            font-family: 'Segoe UI', system-ui, sans-serif;
            background: #0f172a;
            min-height: 100vh;
            color: #e2e8f0;
            padding: 2rem;
        }
        h1 { font-size: 2rem; margin-bottom: 0.25rem; }
        .subtitle { color: #94a3b8; margin-bottom: 2rem; }
        .wrap { max-width: 1100px; margin: 0 auto; }
        .stats {
            display: grid;
            grid-template-columns: repeat(auto-fit, minmax(200px, 1fr));
            gap: 1rem;
            margin-bottom: 2rem;
        }
        .card {
            background: rgba(255,255,255,0.05);
            border: 1px solid rgba(255,255,255,0.08);
            border-radius: 12px;
            padding: 1.25rem;
        }
        .stat-value { font-size: 2rem; font-weight: bold; }
        .stat-label { color: #94a3b8; font-size: 0.9rem; }
        form { display: flex; gap: 0.75rem; flex-wrap: wrap; margin-bottom: 2rem; }
        input {
            flex: 1; min-width: 200px;
            padding: 0.6rem 0.8rem;
            border-radius: 8px; border: 1px solid #334155;
            background: #1e293b; color: #e2e8f0;
        }
        button {
            padding: 0.6rem 1.1rem; border: none; border-radius: 8px;
            background: #3b82f6; color: white; cursor: pointer; font-weight: 600;
        }
        button.secondary { background: #475569; }
        button.danger { background: #dc2626; }
        button:disabled { opacity: 0.5; cursor: not-allowed; }
        table { width: 100%; border-collapse: collapse; }
        th, td { text-align: left; padding: 0.6rem; border-bottom: 1px solid #1e293b; }
        th { color: #94a3b8; font-weight: 600; }
        code { background: #1e293b; padding: 0.15rem 0.4rem; border-radius: 4px; }
        .alert { padding: 0.8rem 1rem; border-radius: 8px; margin-bottom: 1rem; display: none; }
        .alert.error { background: #7f1d1d; display: block; }
        .alert.warning { background: #78350f; display: block; }
        .alert.info { background: #1e3a8a; display: block; }
        .modal-bg {
            position: fixed; inset: 0; background: rgba(0,0,0,0.6);
            display: none; align-items: center; justify-content: center;
        }
        .modal-bg.open { display: flex; }
        .modal { background: #1e293b; border-radius: 12px; padding: 1.5rem; width: 420px; max-width: 90vw; }
        .modal h2 { margin-bottom: 1rem; }
        .modal p { margin-bottom: 0.75rem; }
        .modal .actions { display: flex; justify-content: flex-end; gap: 0.5rem; margin-top: 1rem; }
        .modal input { width: 100%; margin-bottom: 0.75rem; }
        .modal-error { display: none; background: #7f1d1d; padding: 0.6rem 0.8rem; border-radius: 8px; }
        .empty { color: #64748b; text-align: center; padding: 2rem; }
    </style>
</head>
<body>
<div class="wrap">
    <h1>APK Tracker</h1>
    <p class="subtitle">Registered apps, installs and opens</p>

    <div id="alert" class="alert"></div>

    <div class="stats">
        <div class="card"><div class="stat-value" id="total-apps">0</div><div class="stat-label">Apps</div></div>
        <div class="card"><div class="stat-value" id="total-installs">0</div><div class="stat-label">Installs</div></div>
        <div class="card"><div class="stat-value" id="total-opens">0</div><div class="stat-label">Opens</div></div>
    </div>

    <form id="register-form">
        <input id="app-name" placeholder="App name">
        <input id="package-name" placeholder="Package name (com.example.app)">
        <button type="submit" id="register-btn">Register App</button>
    </form>

    <div class="card">
        <table>
            <thead><tr><th>ID</th><th>Name</th><th>Package</th><th>Key</th><th>Installs</th><th>Opens</th><th></th></tr></thead>
            <tbody id="apps-body"><tr><td colspan="7" class="empty">Loading...</td></tr></tbody>
        </table>
    </div>
</div>

<div class="modal-bg" id="confirm-modal">
    <div class="modal">
        <h2>Register this app?</h2>
        <p>Name: <strong id="confirm-name"></strong></p>
        <p>Package: <strong id="confirm-package"></strong></p>
        <div class="actions">
            <button class="secondary" onclick="cancelConfirm()">Cancel</button>
            <button id="confirm-btn" onclick="confirmRegister()">Confirm</button>
        </div>
    </div>
</div>

<div class="modal-bg" id="success-modal">
    <div class="modal">
        <h2>App registered</h2>
        <p>Use this key in the app's tracking calls:</p>
        <p><code id="generated-key"></code></p>
        <div class="actions">
            <button class="secondary" onclick="copyKey()">Copy</button>
            <button onclick="dismissSuccess()">Done</button>
        </div>
    </div>
</div>

<div class="modal-bg" id="edit-modal">
    <div class="modal">
        <h2>Edit app</h2>
        <input id="edit-name" placeholder="App name">
        <input id="edit-package" placeholder="Package name">
        <div class="actions">
            <button class="secondary" onclick="closeModal('edit-modal')">Cancel</button>
            <button id="edit-save-btn" onclick="saveEdit()">Save</button>
        </div>
    </div>
</div>

<div class="modal-bg" id="delete-modal">
    <div class="modal">
        <h2>Delete app?</h2>
        <p>This removes <strong id="delete-name"></strong> together with all of its installs and opens.</p>
        <p class="modal-error" id="delete-error"></p>
        <div class="actions">
            <button class="secondary" onclick="closeModal('delete-modal')">Cancel</button>
            <button class="danger" id="delete-confirm-btn" onclick="confirmDelete()">Delete</button>
        </div>
    </div>
</div>

<script>
    let state = 'idle';
    let pending = null;
    let editing = null;
    let deleting = null;
    let currentApps = [];

    function showAlert(message, kind) {
        const el = document.getElementById('alert');
        el.textContent = message;
        el.className = 'alert ' + (kind || 'error');
    }

    function clearAlert() {
        document.getElementById('alert').className = 'alert';
    }

    function showModalError(id, message) {
        const el = document.getElementById(id);
        el.textContent = message;
        el.style.display = message ? 'block' : 'none';
    }

    function openModal(id) { document.getElementById(id).classList.add('open'); }
    function closeModal(id) { document.getElementById(id).classList.remove('open'); }

    function escapeHtml(value) {
        const div = document.createElement('div');
        div.textContent = value == null ? '' : String(value);
        return div.innerHTML;
    }

    async function api(method, url, body) {
        const opts = { method, headers: {} };
        if (body !== undefined) {
            opts.headers['Content-Type'] = 'application/json';
            opts.body = JSON.stringify(body);
        }
        const res = await fetch(url, opts);
        const data = await res.json().catch(() => ({}));
        if (!res.ok) {
            const detail = data.detail;
            const message = (detail && detail.message) || (typeof detail === 'string' ? detail : res.statusText);
            throw new Error(message);
        }
        return data;
    }

    async function loadDashboard() {
        try {
            const data = await api('GET', '/api/dashboard');
            render(data);
            if (data.stale) {
                showAlert('Error fetching apps: ' + (data.error || 'unknown error') + '. Showing last known data.', 'warning');
            }
        } catch (e) {
            showAlert('Error fetching apps: ' + e.message);
        }
    }

    function render(data) {
        document.getElementById('total-apps').textContent = data.total_apps;
        document.getElementById('total-installs').textContent = data.total_installs;
        document.getElementById('total-opens').textContent = data.total_opens;
        const body = document.getElementById('apps-body');
        currentApps = data.apps;
        if (!data.apps.length) {
            body.innerHTML = '<tr><td colspan="7" class="empty">No apps registered yet</td></tr>';
            return;
        }
        body.innerHTML = data.apps.map((app, i) => `
            <tr>
                <td>${app.id}</td>
                <td>${escapeHtml(app.app_name)}</td>
                <td>${escapeHtml(app.package_name)}</td>
                <td><code>${escapeHtml(app.app_key)}</code></td>
                <td>${app.installs}</td>
                <td>${app.opens}</td>
                <td>
                    <button class="secondary" onclick="openEdit(${i})">Edit</button>
                    <button class="danger" onclick="openDelete(${i})">Delete</button>
                </td>
            </tr>`).join('');
    }

    document.getElementById('register-form').addEventListener('submit', e => {
        e.preventDefault();
        if (state === 'processing') return;
        const name = document.getElementById('app-name').value.trim();
        const pkg = document.getElementById('package-name').value.trim();
        if (!name || !pkg) {
            showAlert('Please fill in all fields');
            return;
        }
        clearAlert();
        pending = { app_name: name, package_name: pkg };
        document.getElementById('confirm-name').textContent = name;
        document.getElementById('confirm-package').textContent = pkg;
        state = 'confirm_pending';
        openModal('confirm-modal');
    });

    function cancelConfirm() {
        state = 'form_filled';
        closeModal('confirm-modal');
    }

    async function confirmRegister() {
        state = 'processing';
        document.getElementById('confirm-btn').disabled = true;
        document.getElementById('register-btn').disabled = true;
        try {
            const app = await api('POST', '/api/apps', pending);
            closeModal('confirm-modal');
            document.getElementById('generated-key').textContent = app.app_key;
            document.getElementById('app-name').value = '';
            document.getElementById('package-name').value = '';
            state = 'success';
            openModal('success-modal');
        } catch (e) {
            closeModal('confirm-modal');
            state = 'error';
            showAlert('Registration failed: ' + e.message);
        } finally {
            document.getElementById('confirm-btn').disabled = false;
            document.getElementById('register-btn').disabled = false;
        }
    }

    function copyKey() {
        const key = document.getElementById('generated-key').textContent;
        navigator.clipboard.writeText(key).then(
            () => showAlert('Key copied to clipboard', 'info'),
            () => showAlert('Could not copy key')
        );
    }

    async function dismissSuccess() {
        closeModal('success-modal');
        state = 'idle';
        pending = null;
        await loadDashboard();
    }

    function openEdit(index) {
        const app = currentApps[index];
        editing = app;
        document.getElementById('edit-name').value = app.app_name;
        document.getElementById('edit-package').value = app.package_name;
        openModal('edit-modal');
    }

    async function saveEdit() {
        const name = document.getElementById('edit-name').value.trim();
        const pkg = document.getElementById('edit-package').value.trim();
        if (!name || !pkg) {
            showAlert('Please fill in all fields');
            return;
        }
        document.getElementById('edit-save-btn').disabled = true;
        try {
            await api('PUT', `/api/apps/${editing.id}`, { app_name: name, package_name: pkg });
            closeModal('edit-modal');
            editing = null;
            clearAlert();
            await loadDashboard();
        } catch (e) {
            showAlert('Update failed: ' + e.message);
        } finally {
            document.getElementById('edit-save-btn').disabled = false;
        }
    }

    function openDelete(index) {
        const app = currentApps[index];
        deleting = app;
        document.getElementById('delete-name').textContent = app.app_name;
        showModalError('delete-error', '');
        openModal('delete-modal');
    }

    async function confirmDelete() {
        document.getElementById('delete-confirm-btn').disabled = true;
        try {
            const res = await api('DELETE', `/api/apps/${deleting.id}`);
            closeModal('delete-modal');
            showAlert(`Deleted ${deleting.app_name} (${res.installs_deleted} installs, ${res.opens_deleted} opens)`, 'info');
            deleting = null;
            await loadDashboard();
        } catch (e) {
            showModalError('delete-error', 'Delete failed: ' + e.message);
        } finally {
            document.getElementById('delete-confirm-btn').disabled = false;
        }
    }

    loadDashboard();
</script>
</body>
</html>
"""
